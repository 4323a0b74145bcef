"""Resolve scraped company names to canonical company records."""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional, Set, Tuple

from .config import resolver_settings
from .models import Company, CompanySize, CompanyStatus
from .storage import LeadStore

logger = logging.getLogger(__name__)

PLACEHOLDER_NAME = "Unknown Company"

CORPORATE_SUFFIXES = (
    "ltd",
    "limited",
    "pvt",
    "private",
    "inc",
    "incorporated",
    "llc",
    "llp",
    "corp",
    "corporation",
    "co",
    "company",
    "enterprises",
    "industries",
    "group",
    "holdings",
)

# Ordered: the first industry with a keyword hit wins.
INDUSTRY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Oil & Gas": ("oil", "gas", "petroleum", "refinery", "fuel", "petrochemical", "lng", "cng"),
    "Construction": ("construction", "builder", "infrastructure", "cement", "concrete", "highway", "road", "nhai"),
    "Mining": ("mining", "mines", "mineral", "coal", "iron ore", "bauxite"),
    "Steel": ("steel", "iron", "metallurgy", "foundry", "metal"),
    "Chemicals": ("chemical", "chemicals", "pharma", "pharmaceutical", "reagent"),
    "Manufacturing": ("manufacturing", "factory", "plant", "industrial", "equipment"),
    "Textiles": ("textile", "garment", "fabric", "spinning", "weaving", "cotton"),
    "Transport": ("transport", "logistics", "fleet", "shipping", "freight", "trucking"),
    "Power & Energy": ("power", "energy", "electricity", "solar", "wind", "thermal"),
    "Food Processing": ("food", "edible oil", "rice", "sugar", "flour", "dairy", "beverage"),
    "Fertilizer": ("fertilizer", "urea", "dap", "npk", "agrochemical"),
    "Paint & Coatings": ("paint", "coating", "lacquer", "varnish"),
    "Real Estate": ("real estate", "property", "developer", "housing", "township"),
    "Shipping": ("shipping", "maritime", "port", "vessel", "marine"),
    "Agriculture": ("agri", "agriculture", "farm", "seed", "irrigation"),
}

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_SUFFIXES = re.compile(r"\b(?:" + "|".join(CORPORATE_SUFFIXES) + r")\b")
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: Optional[str]) -> str:
    """Lowercase, drop punctuation and corporate suffixes, collapse whitespace."""

    if not name:
        return ""
    normalized = _NON_ALNUM.sub("", name.lower())
    normalized = _SUFFIXES.sub("", normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def _tokens(normalized: str) -> Set[str]:
    return set(normalized.split())


def similarity(a: str, b: str) -> float:
    """Jaccard similarity over whitespace tokens of two normalized names."""

    tokens_a = _tokens(a)
    tokens_b = _tokens(b)
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)


def infer_industry(company_name: str) -> str:
    lowered = company_name.lower()
    for industry, keywords in INDUSTRY_KEYWORDS.items():
        for keyword in keywords:
            if keyword in lowered:
                return industry
    return "Other"


class EntityResolver:
    """Map free-text company names onto stored companies, creating them on first sighting.

    Resolution is not atomic: the fuzzy match and the alias write are separate
    store calls, so callers must not resolve the same new name concurrently.
    """

    def __init__(
        self,
        store: LeadStore,
        similarity_threshold: Optional[float] = None,
        candidate_limit: Optional[int] = None,
    ) -> None:
        self.store = store
        self.similarity_threshold = (
            similarity_threshold if similarity_threshold is not None else resolver_settings.similarity_threshold
        )
        self.candidate_limit = candidate_limit if candidate_limit is not None else resolver_settings.candidate_limit

    def resolve(self, raw_name: Optional[str]) -> Company:
        """Return the company for ``raw_name``, adding an alias or creating a record as needed."""

        if not raw_name or len(raw_name.strip()) < 2:
            raw_name = PLACEHOLDER_NAME

        name = raw_name.strip()
        normalized = normalize_name(name)

        company = self.store.find_company_by_exact_name(name)
        if company:
            return company

        company = self.store.find_company_by_alias(name)
        if company:
            return company

        best_match, best_score = self._best_fuzzy_match(normalized)
        if best_match is not None and best_score >= self.similarity_threshold:
            # Fuzzy candidates may be partial records; reload before writing.
            if best_match.id:
                best_match = self.store.get_company(best_match.id) or best_match
            if name not in best_match.aliases:
                best_match.aliases.append(name)
                self.store.save_company(best_match)
                logger.info(
                    "Added alias %r to %r (similarity %.2f)",
                    name,
                    best_match.name,
                    best_score,
                    extra={"company": best_match.name, "step": "resolve"},
                )
            return best_match

        company = self.store.create_company(
            Company(
                name=name,
                industry=infer_industry(name),
                aliases=[],
                size=CompanySize.MEDIUM,
                status=CompanyStatus.PROSPECT,
                source="scraper",
            )
        )
        logger.info(
            "Created company %r (%s)",
            company.name,
            company.industry,
            extra={"company": company.name, "step": "resolve"},
        )
        return company

    def _best_fuzzy_match(self, normalized: str) -> Tuple[Optional[Company], float]:
        best_match: Optional[Company] = None
        best_score = 0.0

        for candidate in self.store.list_companies_for_fuzzy_match(self.candidate_limit):
            score = similarity(normalized, normalize_name(candidate.name))
            if score > best_score:
                best_score = score
                best_match = candidate
            for alias in candidate.aliases:
                alias_score = similarity(normalized, normalize_name(alias))
                if alias_score > best_score:
                    best_score = alias_score
                    best_match = candidate

        return best_match, best_score

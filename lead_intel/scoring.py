"""Multi-factor lead scoring.

Produces a composite 0-100 score from five dimensions:

1. Company fit (industry alignment, size, contacts, footprint)
2. Signal strength (source reliability, inference confidence)
3. Urgency (tender status, deadlines, expansion language)
4. Volume potential (company size, product breadth, quantity language)
5. Geographic fit (presence in serviced territories)

``score_lead`` is pure; ``rescore_all_leads`` is the only function here that
touches storage.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Dict, List, Optional

from .models import Company, CompanySize, Lead, LeadSourceType, Priority, ScoreBreakdown, ScoreResult
from .storage import LeadStore

logger = logging.getLogger(__name__)

WEIGHTS: Dict[str, float] = {
    "company_fit": 0.25,
    "signal_strength": 0.25,
    "urgency": 0.20,
    "volume_potential": 0.15,
    "geographic_fit": 0.15,
}

# States with depot or refinery presence.
SERVICED_TERRITORIES = (
    "maharashtra",
    "andhra pradesh",
    "telangana",
    "karnataka",
    "tamil nadu",
    "kerala",
    "gujarat",
    "rajasthan",
    "madhya pradesh",
    "uttar pradesh",
    "west bengal",
    "odisha",
    "bihar",
    "punjab",
    "haryana",
    "delhi",
    "chhattisgarh",
    "jharkhand",
    "assam",
    "goa",
)

# Ordered: the first key found in the company's industry wins.
INDUSTRY_FIT: Dict[str, int] = {
    "oil & gas": 95,
    "petroleum": 95,
    "energy": 90,
    "construction": 85,
    "infrastructure": 85,
    "roads": 85,
    "mining": 80,
    "cement": 80,
    "steel": 80,
    "manufacturing": 75,
    "chemicals": 75,
    "textiles": 70,
    "fertilizer": 70,
    "shipping": 70,
    "transportation": 70,
    "logistics": 65,
    "power": 75,
    "food processing": 65,
    "edible oil": 70,
    "paint": 65,
    "pharmaceuticals": 60,
    "agriculture": 60,
    "real estate": 55,
    "packaging": 50,
    "it": 20,
    "technology": 20,
    "banking": 15,
    "financial services": 15,
}

SIZE_FIT_BONUS: Dict[CompanySize, int] = {
    CompanySize.ENTERPRISE: 20,
    CompanySize.LARGE: 18,
    CompanySize.MEDIUM: 12,
    CompanySize.SMALL: 6,
    CompanySize.STARTUP: 3,
}
DEFAULT_SIZE_FIT_BONUS = 8

SIZE_VOLUME: Dict[CompanySize, int] = {
    CompanySize.ENTERPRISE: 40,
    CompanySize.LARGE: 30,
    CompanySize.MEDIUM: 20,
    CompanySize.SMALL: 10,
    CompanySize.STARTUP: 5,
}
DEFAULT_SIZE_VOLUME = 15

SOURCE_RELIABILITY: Dict[LeadSourceType, int] = {
    LeadSourceType.TENDER: 90,
    LeadSourceType.REFERRAL: 80,
    LeadSourceType.MANUAL: 70,
    LeadSourceType.NEWS: 60,
    LeadSourceType.WEBSITE: 55,
    LeadSourceType.DIRECTORY: 50,
    LeadSourceType.SOCIAL: 40,
}
DEFAULT_SOURCE_RELIABILITY = 40

_DEADLINE = re.compile(r"deadline|last date|closing|due date", re.IGNORECASE)
_URGENT = re.compile(r"urgent|immediate|asap", re.IGNORECASE)
_EXPANSION = re.compile(r"expansion|new project|greenfield", re.IGNORECASE)
_VOLUME_LANGUAGE = re.compile(r"bulk|large.*quantity|annual.*contract|long.*term", re.IGNORECASE)
_LARGE_QUANTITY = re.compile(r"\d{3,}\s*(mt|kl|ton)", re.IGNORECASE)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float) -> int:
    return max(0, min(round_half_up(value), 100))


def priority_for_score(total_score: int) -> Priority:
    if total_score >= 80:
        return Priority.CRITICAL
    if total_score >= 60:
        return Priority.HIGH
    if total_score >= 40:
        return Priority.MEDIUM
    return Priority.LOW


def score_company_fit(company: Optional[Company]) -> int:
    if company is None:
        return 30
    score = 40

    industry = (company.industry or "").lower()
    for key, value in INDUSTRY_FIT.items():
        if key in industry:
            score = max(score, value)
            break

    score = min(score + SIZE_FIT_BONUS.get(company.size, DEFAULT_SIZE_FIT_BONUS), 100)
    if company.contacts:
        score = min(score + 5, 100)
    if len(company.locations) > 1:
        score = min(score + 5, 100)
    return _clamp(score)


def score_signal_strength(lead: Lead) -> int:
    score = 30

    source_type = lead.source.type or LeadSourceType.MANUAL
    score = max(score, SOURCE_RELIABILITY.get(source_type, DEFAULT_SOURCE_RELIABILITY))

    products = lead.inferred_products
    if products:
        max_confidence = max(product.confidence or 0 for product in products)
        score = min(score + round_half_up(max_confidence * 0.2), 100)
    if len(products) > 1:
        score = min(score + 10, 100)
    return _clamp(score)


def score_urgency(lead: Lead) -> int:
    score = 20
    score += len(lead.dossier.urgency_indicators) * 15

    if lead.source.type == LeadSourceType.TENDER:
        score += 30

    snippet = (lead.source.raw_snippet or "").lower()
    if _DEADLINE.search(snippet):
        score += 15
    if _URGENT.search(snippet):
        score += 20
    if _EXPANSION.search(snippet):
        score += 10
    return _clamp(score)


def score_volume_potential(lead: Lead, company: Optional[Company]) -> int:
    score = 30
    size = company.size if company else None
    score += SIZE_VOLUME.get(size, DEFAULT_SIZE_VOLUME)
    score += min(len(lead.inferred_products) * 8, 30)

    dossier_text = json.dumps(lead.dossier.model_dump(mode="json"), separators=(",", ":")).lower()
    if _VOLUME_LANGUAGE.search(dossier_text):
        score += 15
    if _LARGE_QUANTITY.search(dossier_text):
        score += 10
    return _clamp(score)


def score_geographic_fit(lead: Lead, company: Optional[Company]) -> int:
    score = 30

    state = lead.location.state or (company.headquarters.state if company else "") or ""
    state = state.lower()
    if state and state in SERVICED_TERRITORIES:
        score += 50
    elif state:
        score += 20

    if company and len(company.locations) > 2:
        score += 10
    return _clamp(score)


def explain_score(breakdown: ScoreBreakdown, total: int, lead: Lead, company: Optional[Company]) -> str:
    parts: List[str] = []

    if breakdown.company_fit >= 70:
        parts.append(f"Strong company fit ({(company.industry if company else '') or 'industry'})")
    elif breakdown.company_fit >= 50:
        parts.append("Moderate company fit")

    if breakdown.signal_strength >= 70:
        source_type = lead.source.type.value if lead.source.type else "source"
        parts.append(f"High-confidence signal from {source_type}")

    if breakdown.urgency >= 60:
        parts.append("Elevated urgency detected")
    if breakdown.urgency >= 80:
        parts.append("Active tender/deadline")

    if breakdown.volume_potential >= 60:
        parts.append("Significant volume potential")

    if breakdown.geographic_fit >= 70:
        parts.append("Within HPCL DS territory")

    if lead.inferred_products:
        top = lead.inferred_products[0]
        parts.append(f"Primary product: {top.product_name} ({top.confidence}% confidence)")

    return ". ".join(parts) + f". Overall score: {total}/100."


def score_lead(lead: Lead, company: Optional[Company]) -> ScoreResult:
    """Score a lead against its company; never mutates either argument."""

    breakdown = ScoreBreakdown(
        company_fit=score_company_fit(company),
        signal_strength=score_signal_strength(lead),
        urgency=score_urgency(lead),
        volume_potential=score_volume_potential(lead, company),
        geographic_fit=score_geographic_fit(lead, company),
    )

    total_score = round_half_up(
        breakdown.company_fit * WEIGHTS["company_fit"]
        + breakdown.signal_strength * WEIGHTS["signal_strength"]
        + breakdown.urgency * WEIGHTS["urgency"]
        + breakdown.volume_potential * WEIGHTS["volume_potential"]
        + breakdown.geographic_fit * WEIGHTS["geographic_fit"]
    )

    return ScoreResult(
        total_score=total_score,
        breakdown=breakdown,
        explanation=explain_score(breakdown, total_score, lead, company),
        priority=priority_for_score(total_score),
    )


def apply_score(lead: Lead, result: ScoreResult) -> Lead:
    lead.score = result.total_score
    lead.score_breakdown = result.breakdown
    lead.score_explanation = result.explanation
    lead.priority = result.priority
    return lead


def rescore_all_leads(store: LeadStore) -> Dict[str, int]:
    """Recompute and persist the score of every stored lead."""

    updated = 0
    companies: Dict[str, Optional[Company]] = {}

    for lead in store.list_leads():
        company = None
        if lead.company_id:
            if lead.company_id not in companies:
                companies[lead.company_id] = store.get_company(lead.company_id)
            company = companies[lead.company_id]
        apply_score(lead, score_lead(lead, company))
        store.save_lead(lead)
        updated += 1

    logger.info("Re-scored %d leads", updated, extra={"step": "rescore"})
    return {"updated": updated}

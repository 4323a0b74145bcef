"""Turn fetched items into scored, deduplicated leads."""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Tuple

from .config import crawl_settings
from .entity_resolution import EntityResolver
from .errors import DuplicateLeadError
from .inference import infer_products
from .models import (
    Dossier,
    FetchedItem,
    Lead,
    LeadLocation,
    LeadSource,
    LeadSourceType,
    LeadStatus,
    Source,
    SourceType,
    TimelineEntry,
    utcnow,
)
from .scoring import apply_score, score_lead
from .storage import LeadStore

logger = logging.getLogger(__name__)

NEXT_ACTION = "Review lead and contact procurement team"

URGENCY_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(r"urgent|immediate|asap", re.IGNORECASE), "Urgent requirement"),
    (re.compile(r"tender|bid|rfq|rfp|eoi", re.IGNORECASE), "Active tender/RFQ"),
    (re.compile(r"deadline|last date|closing date", re.IGNORECASE), "Has deadline"),
    (re.compile(r"expansion|new plant|capacity", re.IGNORECASE), "Expansion activity"),
    (re.compile(r"contract.*expir|renewal", re.IGNORECASE), "Contract renewal"),
    (re.compile(r"shortage|supply.*issue", re.IGNORECASE), "Supply shortage"),
    (re.compile(r"commissioning|startup|launch", re.IGNORECASE), "New commissioning"),
)

LEAD_SOURCE_TYPES: Dict[SourceType, LeadSourceType] = {
    SourceType.TENDER_PORTAL: LeadSourceType.TENDER,
    SourceType.GOVERNMENT: LeadSourceType.TENDER,
    SourceType.NEWS_SITE: LeadSourceType.NEWS,
    SourceType.RSS_FEED: LeadSourceType.NEWS,
    SourceType.INDUSTRY_DIRECTORY: LeadSourceType.DIRECTORY,
    SourceType.SOCIAL_MEDIA: LeadSourceType.SOCIAL,
    SourceType.CUSTOM: LeadSourceType.WEBSITE,
}


def extract_urgency_indicators(text: str) -> List[str]:
    return [label for pattern, label in URGENCY_PATTERNS if pattern.search(text or "")]


def lead_source_type(source_type: SourceType) -> LeadSourceType:
    return LEAD_SOURCE_TYPES.get(source_type, LeadSourceType.WEBSITE)


class LeadAssembler:
    """Build at most one lead per fetched item.

    The lead is scored before it is written, so no reader ever sees an
    unscored lead.
    """

    def __init__(self, store: LeadStore, resolver: Optional[EntityResolver] = None) -> None:
        self.store = store
        self.resolver = resolver or EntityResolver(store)

    def assemble(self, item: FetchedItem, source: Source) -> Optional[Lead]:
        """Resolve, infer, dedupe, score and persist; ``None`` when the item is skipped."""

        company = self.resolver.resolve(item.company or item.title)

        products = infer_products(f"{item.title} {item.description} {item.company}")
        if not products:
            return None

        source_url = item.url or source.url
        if self.store.find_lead_by_company_and_source_url(company.name, source_url):
            logger.debug(
                "Skipping duplicate lead for %s",
                company.name,
                extra={"source": source.name, "item_url": source_url},
            )
            return None

        crawled_at = utcnow()
        signal_type = lead_source_type(source.type)
        lead = Lead(
            title=item.title or f"Opportunity: {company.name}",
            company_id=company.id,
            company_name=company.name,
            status=LeadStatus.NEW,
            source=LeadSource(
                type=signal_type,
                name=source.name,
                url=source_url,
                scraped_at=crawled_at,
                raw_snippet=(item.description or "")[: crawl_settings.snippet_length],
            ),
            inferred_products=products,
            location=LeadLocation(
                city=company.headquarters.city,
                state=company.headquarters.state,
                region=company.headquarters.state,
            ),
            dossier=Dossier(
                company_profile=company.description or f"{company.name} - {company.industry}",
                procurement_clues=[clue for clue in [item.description or item.title] if clue],
                product_fit=", ".join(product.product_name for product in products),
                urgency_indicators=extract_urgency_indicators(f"{item.title} {item.description}"),
                next_action=NEXT_ACTION,
            ),
            tags=[signal_type.value, *(product.product_code for product in products)],
            timeline=[
                TimelineEntry(
                    action="lead_created",
                    description=(
                        f"Auto-generated from {source.name} ({source.type.value}). "
                        f"Source URL: {source_url}. Crawled at {crawled_at.isoformat()}."
                    ),
                    timestamp=crawled_at,
                    metadata={
                        "source_id": source.id,
                        "source_name": source.name,
                        "source_type": source.type.value,
                        "crawled_url": source_url,
                        "products_inferred": len(products),
                    },
                )
            ],
        )
        apply_score(lead, score_lead(lead, company))

        try:
            created = self.store.create_lead(lead)
        except DuplicateLeadError:
            logger.info(
                "Lead for %s was created concurrently, skipping",
                company.name,
                extra={"source": source.name, "item_url": source_url},
            )
            return None

        logger.info(
            "Created lead %r (score %d, %s)",
            created.title,
            created.score,
            created.priority.value,
            extra={"source": source.name, "item_url": source_url, "lead_id": created.id},
        )
        return created

"""Shared test fixtures."""

from typing import Callable, List, Optional

import pytest

from lead_intel.models import (
    Company,
    CompanySize,
    Dossier,
    FetchedItem,
    InferredProduct,
    Lead,
    LeadLocation,
    LeadSource,
    LeadSourceType,
    Source,
    SourceType,
)
from lead_intel.storage import InMemoryStore


@pytest.fixture
def store() -> InMemoryStore:
    """Provide an empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def make_source() -> Callable[..., Source]:
    """Build sources with sensible defaults."""

    def _make(name: str = "Tender Portal", url: str = "https://tenders.example.gov/list", **fields) -> Source:
        fields.setdefault("type", SourceType.TENDER_PORTAL)
        return Source(name=name, url=url, **fields)

    return _make


@pytest.fixture
def make_lead() -> Callable[..., Lead]:
    """Build unscored leads for scoring tests."""

    def _make(
        source_type: Optional[LeadSourceType] = LeadSourceType.TENDER,
        products: Optional[List[InferredProduct]] = None,
        state: str = "",
        snippet: str = "",
        indicators: Optional[List[str]] = None,
        clues: Optional[List[str]] = None,
    ) -> Lead:
        return Lead(
            title="Supply of Furnace Oil",
            company_name="Tata Steel Limited",
            source=LeadSource(type=source_type, name="Portal", url="https://tenders.example.gov/1", raw_snippet=snippet),
            inferred_products=products or [],
            location=LeadLocation(state=state),
            dossier=Dossier(urgency_indicators=indicators or [], procurement_clues=clues or []),
        )

    return _make


@pytest.fixture
def steel_company() -> Company:
    return Company(name="Tata Steel Limited", industry="Steel", size=CompanySize.ENTERPRISE)


@pytest.fixture
def furnace_oil_item() -> FetchedItem:
    return FetchedItem(
        title="Tender for 50,000 KL Furnace Oil supply",
        description="Annual contract for furnace oil supply to blast furnace units. Last date 30 June.",
        company="Tata Steel Ltd.",
        date="2024-05-01",
        url="https://tenders.example.gov/tender/123",
    )

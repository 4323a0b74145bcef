"""Structured data models shared across the lead pipeline."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CompanySize(str, Enum):
    """Coarse size tier used by scoring."""

    STARTUP = "startup"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ENTERPRISE = "enterprise"


class CompanyStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    WON = "won"
    LOST = "lost"


class Priority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LeadSourceType(str, Enum):
    """Signal type recorded on a lead; drives signal strength and urgency scoring."""

    TENDER = "tender"
    NEWS = "news"
    DIRECTORY = "directory"
    SOCIAL = "social"
    WEBSITE = "website"
    MANUAL = "manual"
    REFERRAL = "referral"


class SourceType(str, Enum):
    """Kind of crawl target configured by operators."""

    TENDER_PORTAL = "tender_portal"
    NEWS_SITE = "news_site"
    INDUSTRY_DIRECTORY = "industry_directory"
    GOVERNMENT = "government"
    SOCIAL_MEDIA = "social_media"
    RSS_FEED = "rss_feed"
    CUSTOM = "custom"


class SourceStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    ERROR = "error"
    RETIRED = "retired"


# ---------------------------------------------------------------------------
# Company
# ---------------------------------------------------------------------------


class Headquarters(BaseModel):
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""


class CompanyLocation(BaseModel):
    name: Optional[str] = None
    type: Optional[str] = Field(default=None, description="plant, office, warehouse, depot, refinery or other")
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None


class CompanyContact(BaseModel):
    name: Optional[str] = None
    designation: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    is_primary: bool = False


class ProductNeed(BaseModel):
    product_code: str
    product_name: Optional[str] = None
    estimated_volume: Optional[str] = None
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    inferred_from: Optional[str] = None


class Company(BaseModel):
    """Canonical organization record produced by entity resolution."""

    id: Optional[str] = Field(default=None, description="Storage identifier, assigned on create")
    name: str = Field(description="Primary name, unique case-insensitively")
    aliases: List[str] = Field(default_factory=list, description="Alternate spellings and abbreviations")
    industry: str = Field(default="Other", description="Free-text industry classification")
    size: Optional[CompanySize] = Field(default=CompanySize.MEDIUM, description="Size tier")
    headquarters: Headquarters = Field(default_factory=Headquarters)
    locations: List[CompanyLocation] = Field(default_factory=list)
    contacts: List[CompanyContact] = Field(default_factory=list)
    product_needs: List[ProductNeed] = Field(default_factory=list)
    status: CompanyStatus = CompanyStatus.ACTIVE
    source: str = Field(default="manual", description="Where this company was first discovered")
    description: str = ""
    website: str = ""
    tags: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Lead
# ---------------------------------------------------------------------------


class InferredProduct(BaseModel):
    """A product need inferred from free text."""

    product_code: str
    product_name: str
    confidence: int = Field(ge=0, le=100)
    reason: str = ""


class ScoreBreakdown(BaseModel):
    company_fit: int = Field(default=0, ge=0, le=100)
    signal_strength: int = Field(default=0, ge=0, le=100)
    urgency: int = Field(default=0, ge=0, le=100)
    volume_potential: int = Field(default=0, ge=0, le=100)
    geographic_fit: int = Field(default=0, ge=0, le=100)


class LeadSource(BaseModel):
    """Provenance of the signal a lead was derived from."""

    type: Optional[LeadSourceType] = None
    name: str = ""
    url: str = ""
    scraped_at: Optional[datetime] = None
    raw_snippet: str = ""


class Dossier(BaseModel):
    company_profile: str = ""
    procurement_clues: List[str] = Field(default_factory=list)
    product_fit: str = ""
    urgency_indicators: List[str] = Field(default_factory=list)
    next_action: str = ""
    competitor_info: str = ""
    estimated_deal_value: str = ""


class LeadLocation(BaseModel):
    city: str = ""
    state: str = ""
    region: str = ""


class TimelineEntry(BaseModel):
    action: str
    description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class Lead(BaseModel):
    """A scored sales opportunity derived from one source item."""

    id: Optional[str] = None
    title: str
    company_id: Optional[str] = Field(default=None, description="Owning company identifier")
    company_name: str = Field(description="Denormalized company name for listing and dedup")
    status: LeadStatus = LeadStatus.NEW
    priority: Priority = Priority.MEDIUM
    score: int = Field(default=0, ge=0, le=100)
    score_breakdown: ScoreBreakdown = Field(default_factory=ScoreBreakdown)
    score_explanation: str = ""
    inferred_products: List[InferredProduct] = Field(default_factory=list)
    source: LeadSource = Field(default_factory=LeadSource)
    dossier: Dossier = Field(default_factory=Dossier)
    location: LeadLocation = Field(default_factory=LeadLocation)
    tags: List[str] = Field(default_factory=list)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    notes: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


class SourceSelectors(BaseModel):
    """CSS selectors used to pull items out of an HTML page."""

    container: str = ""
    title: str = ""
    description: str = ""
    company: str = ""
    date: str = ""
    link: str = ""


class SourceConfig(BaseModel):
    selectors: SourceSelectors = Field(default_factory=SourceSelectors)
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    is_rss: bool = False
    render_js: bool = Field(default=False, description="Fetch through a headless browser instead of plain HTTP")


class SourceSchedule(BaseModel):
    enabled: bool = True
    interval_minutes: int = 60


class Source(BaseModel):
    """A crawl target and its governance counters."""

    id: Optional[str] = None
    name: str
    type: SourceType = SourceType.CUSTOM
    url: str
    description: str = ""
    config: SourceConfig = Field(default_factory=SourceConfig)
    status: SourceStatus = SourceStatus.ACTIVE
    reliability: int = Field(default=50, ge=0, le=100)
    schedule: SourceSchedule = Field(default_factory=SourceSchedule)
    last_crawled: Optional[datetime] = None
    last_success: Optional[datetime] = None
    last_error: str = ""
    crawl_count: int = 0
    error_count: int = 0
    leads_generated: int = 0
    region: str = ""
    tags: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Transient pipeline payloads
# ---------------------------------------------------------------------------


class FetchedItem(BaseModel):
    """One raw item pulled from a source before resolution and inference."""

    title: str = ""
    description: str = ""
    company: str = ""
    date: str = ""
    url: str = ""


class ScoreResult(BaseModel):
    total_score: int = Field(ge=0, le=100)
    breakdown: ScoreBreakdown
    explanation: str
    priority: Priority


class CrawlResult(BaseModel):
    """Outcome of crawling one source."""

    source_name: str
    items_processed: int = 0
    leads_created: int = 0
    errors: List[str] = Field(default_factory=list)

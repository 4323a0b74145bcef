"""Lead intelligence pipeline building blocks."""

from .assembler import LeadAssembler
from .entity_resolution import EntityResolver
from .fetcher import SourceFetcher
from .inference import explain_inference, infer_products
from .models import Company, CrawlResult, FetchedItem, Lead, Source
from .pipeline import CrawlOrchestrator
from .scoring import rescore_all_leads, score_lead
from .storage import InMemoryStore, LeadStore, SupabaseStore

__all__ = [
    "Company",
    "CrawlOrchestrator",
    "CrawlResult",
    "EntityResolver",
    "FetchedItem",
    "InMemoryStore",
    "Lead",
    "LeadAssembler",
    "LeadStore",
    "Source",
    "SourceFetcher",
    "SupabaseStore",
    "explain_inference",
    "infer_products",
    "rescore_all_leads",
    "score_lead",
]

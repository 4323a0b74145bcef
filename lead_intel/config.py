"""Configuration helpers for the lead intelligence pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class SupabaseSettings:
    """Supabase connection details."""

    url: Optional[str] = os.getenv("SUPABASE_URL")
    key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
    company_table: str = os.getenv("SUPABASE_COMPANY_TABLE", "companies")
    lead_table: str = os.getenv("SUPABASE_LEAD_TABLE", "leads")
    source_table: str = os.getenv("SUPABASE_SOURCE_TABLE", "sources")


@dataclass(frozen=True)
class CrawlSettings:
    """Fetching and pacing parameters."""

    user_agent: str = os.getenv("CRAWL_USER_AGENT", "Mozilla/5.0 (compatible; LeadIntelBot/1.0)")
    request_timeout: float = float(os.getenv("CRAWL_REQUEST_TIMEOUT", "15"))
    robots_agent: str = os.getenv("CRAWL_ROBOTS_AGENT", "LeadIntelBot")
    robots_timeout: float = float(os.getenv("CRAWL_ROBOTS_TIMEOUT", "5"))
    robots_cache_seconds: int = int(os.getenv("CRAWL_ROBOTS_CACHE_SECONDS", "3600"))
    respect_robots: bool = os.getenv("CRAWL_RESPECT_ROBOTS", "true").lower() == "true"
    inter_source_delay: float = float(os.getenv("CRAWL_INTER_SOURCE_DELAY", "2.0"))
    max_error_count: int = int(os.getenv("CRAWL_MAX_ERROR_COUNT", "10"))
    snippet_length: int = int(os.getenv("CRAWL_SNIPPET_LENGTH", "500"))
    use_cache: bool = os.getenv("CRAWL_USE_CACHE", "false").lower() == "true"
    sources_file: str = os.getenv("SOURCES_FILE", "sources.json")


@dataclass(frozen=True)
class ResolverSettings:
    """Entity resolution thresholds."""

    similarity_threshold: float = float(os.getenv("RESOLVER_SIMILARITY_THRESHOLD", "0.7"))
    candidate_limit: int = int(os.getenv("RESOLVER_CANDIDATE_LIMIT", "500"))


@dataclass(frozen=True)
class LogSettings:
    """Logging output options."""

    level: str = os.getenv("LOG_LEVEL", "INFO")
    json: bool = os.getenv("LOG_JSON", "true").lower() == "true"


supabase_settings = SupabaseSettings()
crawl_settings = CrawlSettings()
resolver_settings = ResolverSettings()
log_settings = LogSettings()

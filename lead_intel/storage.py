"""Persistence backends for companies, leads and sources."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client, create_client

from .config import supabase_settings
from .errors import DuplicateCompanyError, DuplicateLeadError, StorageError
from .models import Company, Lead, Source, SourceStatus, utcnow

_UNIQUE_VIOLATION = "23505"


class LeadStore(ABC):
    """Operations the pipeline needs from the document store."""

    @abstractmethod
    def find_company_by_exact_name(self, name: str) -> Optional[Company]:
        """Case-insensitive exact match on the primary name."""

    @abstractmethod
    def find_company_by_alias(self, name: str) -> Optional[Company]:
        """Case-insensitive exact match on any alias."""

    @abstractmethod
    def list_companies_for_fuzzy_match(self, limit: int) -> List[Company]:
        """Most recently created companies first."""

    @abstractmethod
    def get_company(self, company_id: str) -> Optional[Company]: ...

    @abstractmethod
    def create_company(self, company: Company) -> Company: ...

    @abstractmethod
    def save_company(self, company: Company) -> None: ...

    @abstractmethod
    def find_lead_by_company_and_source_url(self, company_name: str, source_url: str) -> Optional[Lead]: ...

    @abstractmethod
    def create_lead(self, lead: Lead) -> Lead: ...

    @abstractmethod
    def save_lead(self, lead: Lead) -> None: ...

    @abstractmethod
    def list_leads(self) -> List[Lead]: ...

    @abstractmethod
    def list_active_sources(self) -> List[Source]:
        """Sources with status active and scheduling enabled, in crawl order."""

    @abstractmethod
    def save_source(self, source: Source) -> None: ...


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryStore(LeadStore):
    """Process-local store used for dry runs and tests.

    Records are copied on the way in and out so callers cannot mutate stored
    state without an explicit save.
    """

    def __init__(self, sources: Optional[List[Source]] = None) -> None:
        self._companies: Dict[str, Company] = {}
        self._leads: Dict[str, Lead] = {}
        self._sources: Dict[str, Source] = {}
        for source in sources or []:
            self.add_source(source)

    # -- companies ---------------------------------------------------------

    def find_company_by_exact_name(self, name: str) -> Optional[Company]:
        key = name.strip().lower()
        for company in self._companies.values():
            if company.name.lower() == key:
                return company.model_copy(deep=True)
        return None

    def find_company_by_alias(self, name: str) -> Optional[Company]:
        key = name.strip().lower()
        for company in self._companies.values():
            if any(alias.lower() == key for alias in company.aliases):
                return company.model_copy(deep=True)
        return None

    def list_companies_for_fuzzy_match(self, limit: int) -> List[Company]:
        newest_first = list(self._companies.values())[::-1]
        return [company.model_copy(deep=True) for company in newest_first[:limit]]

    def get_company(self, company_id: str) -> Optional[Company]:
        company = self._companies.get(company_id)
        return company.model_copy(deep=True) if company else None

    def create_company(self, company: Company) -> Company:
        if self.find_company_by_exact_name(company.name):
            raise DuplicateCompanyError(f"Company {company.name!r} already exists")
        stored = company.model_copy(deep=True, update={"id": company.id or _new_id()})
        self._companies[stored.id] = stored
        return stored.model_copy(deep=True)

    def save_company(self, company: Company) -> None:
        if not company.id or company.id not in self._companies:
            raise StorageError(f"Unknown company {company.name!r}")
        self._companies[company.id] = company.model_copy(deep=True, update={"updated_at": utcnow()})

    # -- leads -------------------------------------------------------------

    def find_lead_by_company_and_source_url(self, company_name: str, source_url: str) -> Optional[Lead]:
        for lead in self._leads.values():
            if lead.company_name == company_name and lead.source.url == source_url:
                return lead.model_copy(deep=True)
        return None

    def create_lead(self, lead: Lead) -> Lead:
        if self.find_lead_by_company_and_source_url(lead.company_name, lead.source.url):
            raise DuplicateLeadError(lead.company_name, lead.source.url)
        stored = lead.model_copy(deep=True, update={"id": lead.id or _new_id()})
        self._leads[stored.id] = stored
        return stored.model_copy(deep=True)

    def save_lead(self, lead: Lead) -> None:
        if not lead.id or lead.id not in self._leads:
            raise StorageError(f"Unknown lead {lead.title!r}")
        self._leads[lead.id] = lead.model_copy(deep=True, update={"updated_at": utcnow()})

    def list_leads(self) -> List[Lead]:
        return [lead.model_copy(deep=True) for lead in self._leads.values()]

    # -- sources -----------------------------------------------------------

    def add_source(self, source: Source) -> Source:
        stored = source.model_copy(deep=True, update={"id": source.id or _new_id()})
        self._sources[stored.id] = stored
        return stored.model_copy(deep=True)

    def list_sources(self) -> List[Source]:
        return [source.model_copy(deep=True) for source in self._sources.values()]

    def list_active_sources(self) -> List[Source]:
        return [
            source.model_copy(deep=True)
            for source in self._sources.values()
            if source.status == SourceStatus.ACTIVE and source.schedule.enabled
        ]

    def save_source(self, source: Source) -> None:
        if not source.id or source.id not in self._sources:
            raise StorageError(f"Unknown source {source.name!r}")
        self._sources[source.id] = source.model_copy(deep=True)


class SupabaseStore(LeadStore):
    """Supabase-backed store.

    Expects lowercased ``name_key``/``alias_keys`` columns on companies and a
    flat ``source_url`` column on leads, each backed by a unique constraint
    (see ``supabase_schema.sql``).
    """

    def __init__(self, client: Optional[Client] = None) -> None:
        self._client: Optional[Client] = client
        if self._client is None and supabase_settings.url and supabase_settings.key:
            self._client = create_client(supabase_settings.url, supabase_settings.key)

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def _table(self, name: str):
        if not self._client:
            raise StorageError("Supabase client is not configured. Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.")
        return self._client.table(name)

    @staticmethod
    def _execute(builder: Any, action: str) -> List[Dict[str, Any]]:
        try:
            response = builder.execute()
        except APIError as api_exc:
            raise StorageError(f"Failed to {action} in Supabase: {api_exc.message}") from api_exc
        return response.data or []

    # -- row mapping -------------------------------------------------------

    @staticmethod
    def _company_row(company: Company) -> Dict[str, Any]:
        row = company.model_dump(mode="json", exclude_none=True)
        row["name_key"] = company.name.strip().lower()
        row["alias_keys"] = [alias.strip().lower() for alias in company.aliases]
        return row

    @staticmethod
    def _lead_row(lead: Lead) -> Dict[str, Any]:
        row = lead.model_dump(mode="json", exclude_none=True)
        row["source_url"] = lead.source.url
        return row

    # Extra columns such as name_key and source_url are ignored by the models.
    @staticmethod
    def _to_company(row: Dict[str, Any]) -> Company:
        return Company.model_validate(row)

    @staticmethod
    def _to_lead(row: Dict[str, Any]) -> Lead:
        return Lead.model_validate(row)

    # -- companies ---------------------------------------------------------

    def find_company_by_exact_name(self, name: str) -> Optional[Company]:
        rows = self._execute(
            self._table(supabase_settings.company_table)
            .select("*")
            .eq("name_key", name.strip().lower())
            .limit(1),
            "look up company by name",
        )
        return self._to_company(rows[0]) if rows else None

    def find_company_by_alias(self, name: str) -> Optional[Company]:
        rows = self._execute(
            self._table(supabase_settings.company_table)
            .select("*")
            .contains("alias_keys", [name.strip().lower()])
            .limit(1),
            "look up company by alias",
        )
        return self._to_company(rows[0]) if rows else None

    def list_companies_for_fuzzy_match(self, limit: int) -> List[Company]:
        rows = self._execute(
            self._table(supabase_settings.company_table)
            .select("id,name,aliases")
            .order("created_at", desc=True)
            .limit(limit),
            "list companies",
        )
        # Only name and aliases are loaded; callers that mutate fetch the full record.
        return [self._to_company(row) for row in rows]

    def get_company(self, company_id: str) -> Optional[Company]:
        rows = self._execute(
            self._table(supabase_settings.company_table).select("*").eq("id", company_id).limit(1),
            "load company",
        )
        return self._to_company(rows[0]) if rows else None

    def create_company(self, company: Company) -> Company:
        row = self._company_row(company)
        row.setdefault("id", _new_id())
        try:
            rows = self._execute(self._table(supabase_settings.company_table).insert(row), "insert company")
        except StorageError as exc:
            if isinstance(exc.__cause__, APIError) and exc.__cause__.code == _UNIQUE_VIOLATION:
                raise DuplicateCompanyError(f"Company {company.name!r} already exists") from exc.__cause__
            raise
        return self._to_company(rows[0]) if rows else company.model_copy(update={"id": row["id"]})

    def save_company(self, company: Company) -> None:
        if not company.id:
            raise StorageError(f"Cannot update company {company.name!r} without an id")
        company.updated_at = utcnow()
        self._execute(
            self._table(supabase_settings.company_table).update(self._company_row(company)).eq("id", company.id),
            "update company",
        )

    # -- leads -------------------------------------------------------------

    def find_lead_by_company_and_source_url(self, company_name: str, source_url: str) -> Optional[Lead]:
        rows = self._execute(
            self._table(supabase_settings.lead_table)
            .select("*")
            .eq("company_name", company_name)
            .eq("source_url", source_url)
            .limit(1),
            "look up lead",
        )
        return self._to_lead(rows[0]) if rows else None

    def create_lead(self, lead: Lead) -> Lead:
        row = self._lead_row(lead)
        row.setdefault("id", _new_id())
        try:
            rows = self._execute(self._table(supabase_settings.lead_table).insert(row), "insert lead")
        except StorageError as exc:
            if isinstance(exc.__cause__, APIError) and exc.__cause__.code == _UNIQUE_VIOLATION:
                raise DuplicateLeadError(lead.company_name, lead.source.url) from exc.__cause__
            raise
        return self._to_lead(rows[0]) if rows else lead.model_copy(update={"id": row["id"]})

    def save_lead(self, lead: Lead) -> None:
        if not lead.id:
            raise StorageError(f"Cannot update lead {lead.title!r} without an id")
        lead.updated_at = utcnow()
        self._execute(
            self._table(supabase_settings.lead_table).update(self._lead_row(lead)).eq("id", lead.id),
            "update lead",
        )

    def list_leads(self) -> List[Lead]:
        rows = self._execute(
            self._table(supabase_settings.lead_table).select("*").order("created_at"),
            "list leads",
        )
        return [self._to_lead(row) for row in rows]

    # -- sources -----------------------------------------------------------

    def list_active_sources(self) -> List[Source]:
        rows = self._execute(
            self._table(supabase_settings.source_table)
            .select("*")
            .eq("status", SourceStatus.ACTIVE.value)
            .order("created_at"),
            "list sources",
        )
        sources = [Source.model_validate(row) for row in rows]
        return [source for source in sources if source.schedule.enabled]

    def save_source(self, source: Source) -> None:
        row = source.model_dump(mode="json", exclude_none=True)
        if source.id:
            self._execute(
                self._table(supabase_settings.source_table).update(row).eq("id", source.id),
                "update source",
            )
        else:
            self._execute(
                self._table(supabase_settings.source_table).upsert(row, on_conflict="name"),
                "upsert source",
            )

"""Exception hierarchy for the lead intelligence pipeline."""

from __future__ import annotations


class LeadIntelError(Exception):
    """Base class for pipeline errors."""


class SourceConfigError(LeadIntelError):
    """A source definition is missing or invalid."""


class FetchError(LeadIntelError):
    """A source could not be fetched or parsed."""

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(message)
        self.source_name = source_name


class StorageError(LeadIntelError, RuntimeError):
    """The persistence layer rejected or failed an operation."""


class DuplicateLeadError(StorageError):
    """A lead with the same company name and source URL already exists."""

    def __init__(self, company_name: str, source_url: str) -> None:
        super().__init__(f"Lead already exists for {company_name!r} at {source_url}")
        self.company_name = company_name
        self.source_url = source_url


class DuplicateCompanyError(StorageError):
    """A company with the same primary name (case-insensitive) already exists."""

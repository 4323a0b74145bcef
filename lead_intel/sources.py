"""Load crawl source definitions from a JSON file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Union
from urllib.parse import urlparse

from pydantic import ValidationError

from .errors import SourceConfigError
from .models import Source


def parse_sources(data: object) -> List[Source]:
    """Validate raw source definitions, failing fast on the first bad entry."""

    if isinstance(data, dict):
        data = data.get("sources")
    if not isinstance(data, list):
        raise SourceConfigError("Sources file must contain a list of sources (or an object with a 'sources' list).")

    sources: List[Source] = []
    seen = set()
    for index, entry in enumerate(data):
        try:
            source = Source.model_validate(entry)
        except ValidationError as exc:
            raise SourceConfigError(f"Invalid source at position {index}: {exc}") from exc

        parsed = urlparse(source.url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise SourceConfigError(f"Source {source.name!r} has an invalid URL: {source.url!r}")

        key = source.name.strip().lower()
        if key in seen:
            raise SourceConfigError(f"Duplicate source name {source.name!r}")
        seen.add(key)
        sources.append(source)
    return sources


def load_sources(path: Union[str, Path]) -> List[Source]:
    source_path = Path(path)
    if not source_path.exists():
        raise SourceConfigError(f"Sources file not found: {source_path}")
    try:
        data = json.loads(source_path.read_text())
    except json.JSONDecodeError as exc:
        raise SourceConfigError(f"Sources file {source_path} is not valid JSON: {exc}") from exc
    return parse_sources(data)

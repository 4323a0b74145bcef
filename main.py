"""Command-line entry point for the lead intelligence pipeline."""

from __future__ import annotations

import asyncio
import json
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Any, Dict, Optional

from lead_intel.config import crawl_settings
from lead_intel.inference import explain_inference
from lead_intel.logging_config import configure_logging
from lead_intel.pipeline import run_pipeline
from lead_intel.scoring import rescore_all_leads
from lead_intel.sources import load_sources
from lead_intel.storage import InMemoryStore, LeadStore, SupabaseStore


def build_store(args: Namespace) -> LeadStore:
    """Use Supabase when configured, otherwise an in-memory store seeded from the sources file."""

    if not args.dry_run:
        supabase = SupabaseStore()
        if supabase.enabled:
            return supabase
    return InMemoryStore(sources=load_sources(args.sources))


def _emit(payload: Any, output: Optional[str]) -> None:
    text = json.dumps(payload, indent=2, default=str)
    if output:
        output_path = Path(output)
        output_path.write_text(text)
        print(f"Saved results to {output_path}")
    else:
        print(text)


def _crawl(args: Namespace) -> Dict[str, Any]:
    store = build_store(args)
    results = asyncio.run(run_pipeline(store, source_name=args.source))
    payload: Dict[str, Any] = {"results": [result.model_dump() for result in results]}
    if isinstance(store, InMemoryStore):
        payload["leads"] = [lead.model_dump(mode="json") for lead in store.list_leads()]
    return payload


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Crawl tender, news and directory sources into scored fuel-sales leads")
    parser.add_argument("--sources", default=crawl_settings.sources_file, help="Path to the sources JSON file")
    parser.add_argument("--output", help="Optional JSON file path for exporting results")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep everything in memory even when Supabase credentials are configured",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    crawl = commands.add_parser("crawl", help="Crawl all active sources, or one by name")
    crawl.add_argument("--source", default=None, help="Only crawl the source with this name")

    commands.add_parser("rescore", help="Recompute scores for every stored lead")

    infer = commands.add_parser("infer", help="Explain product inference for a piece of text")
    infer.add_argument("text", help="Text to analyse")
    infer.add_argument("--industry", default=None, help="Known industry of the company")

    return parser


def main() -> None:
    parser = build_parser()
    args: Namespace = parser.parse_args()
    configure_logging(level=args.log_level)

    if args.command == "crawl":
        _emit(_crawl(args), args.output)
    elif args.command == "rescore":
        _emit(rescore_all_leads(build_store(args)), args.output)
    elif args.command == "infer":
        _emit(explain_inference(args.text, args.industry), args.output)


if __name__ == "__main__":
    main()

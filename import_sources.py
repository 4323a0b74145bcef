"""Utility script to seed the Supabase sources table from a sources JSON file."""

from __future__ import annotations

import argparse
from pathlib import Path

from lead_intel.sources import load_sources
from lead_intel.storage import SupabaseStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Import crawl sources into Supabase from a JSON file.")
    parser.add_argument(
        "--input",
        required=True,
        help="Path to a sources JSON file (same format main.py reads).",
    )
    parser.add_argument(
        "--paused",
        action="store_true",
        help="Import every source with scheduling disabled.",
    )
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    store = SupabaseStore()
    if not store.enabled:
        raise RuntimeError("Supabase client is not configured. Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.")

    sources = load_sources(Path(args.input))
    for source in sources:
        if args.paused:
            source.schedule.enabled = False
        store.save_source(source)

    print(f"Imported {len(sources)} sources into Supabase.")


if __name__ == "__main__":
    main()

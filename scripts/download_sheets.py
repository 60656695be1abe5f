#!/usr/bin/env python3
"""
Downloads public Google Sheets (e.g. Striver SDE sheet, Blind 75, NeetCode 150)
as CSV files that can be uploaded to the planner.

Usage:
    python scripts/download_sheets.py "Blind 75=https://docs.google.com/spreadsheets/d/<id>/edit" ...
    python scripts/download_sheets.py --from-file sheets.txt --output-dir sheets/
"""

import argparse
import os
import re
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dsaplanner.services.sheet_service import to_export_url  # noqa: E402

# Delay between requests (in seconds)
REQUEST_DELAY = 1.0


def fetch_with_retry(url: str, max_retries: int = 3) -> Optional[requests.Response]:
    """Fetch URL with retry logic."""
    for attempt in range(max_retries):
        try:
            response = requests.get(url, timeout=30)
            if response.status_code == 200:
                return response
            elif response.status_code in (401, 403, 404):
                print(f"  Not accessible ({response.status_code}): {url}")
                print("  Make sure the sheet is shared as 'Anyone with the link can view'.")
                return None
            else:
                print(f"  Attempt {attempt + 1}: Status {response.status_code} for {url}")
        except requests.RequestException as e:
            print(f"  Attempt {attempt + 1}: Error fetching {url}: {e}")

        if attempt < max_retries - 1:
            time.sleep(REQUEST_DELAY * 2)

    return None


def parse_sheet_arg(value: str) -> Tuple[str, str]:
    """Parse 'Name=URL' (or a bare URL) into (name, url)."""
    name, sep, url = value.partition("=")
    # A "=" after the first "/" belongs to the URL query
    if sep and "/" not in name:
        return name.strip(), url.strip()
    return "", value.strip()


def output_filename(name: str, index: int) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower()) if name else f"sheet-{index + 1}"
    slug = re.sub(r"[^a-z0-9_-]", "", slug) or f"sheet-{index + 1}"
    return f"{slug}.csv"


def download_sheets(sheets: List[Tuple[str, str]], output_dir: str) -> int:
    """Download every sheet; return the number saved."""
    os.makedirs(output_dir, exist_ok=True)
    saved = 0

    for index, (name, url) in enumerate(sheets):
        label = name or url
        export_url = to_export_url(url, "csv")
        print(f"\nDownloading {label}...")

        response = fetch_with_retry(export_url)
        if response is None:
            print(f"  Could not download {label}")
            continue

        filepath = os.path.join(output_dir, output_filename(name, index))
        with open(filepath, "wb") as f:
            f.write(response.content)
        print(f"  Saved to {filepath} ({len(response.content)} bytes)")
        saved += 1

        # Add delay between requests
        if index < len(sheets) - 1:
            time.sleep(REQUEST_DELAY)

    return saved


def main():
    parser = argparse.ArgumentParser(description="Download public Google Sheets as CSV")
    parser.add_argument("sheets", nargs="*", help="'Name=URL' pairs or bare URLs")
    parser.add_argument("--from-file", help="File with one 'Name=URL' entry per line")
    parser.add_argument("--output-dir", default="sheets", help="Directory for the CSV files")
    args = parser.parse_args()

    entries = list(args.sheets)
    if args.from_file:
        with open(args.from_file, "r", encoding="utf-8") as f:
            entries.extend(line.strip() for line in f if line.strip() and not line.startswith("#"))

    if not entries:
        parser.error("No sheets given")

    sheets = [parse_sheet_arg(entry) for entry in entries]

    print("=" * 60)
    print(f"Downloading {len(sheets)} sheet(s) to {args.output_dir}")
    print("=" * 60)

    saved = download_sheets(sheets, args.output_dir)

    print("\n" + "=" * 60)
    print(f"Done! {saved}/{len(sheets)} sheet(s) saved.")
    print("=" * 60)

    if saved < len(sheets):
        sys.exit(1)


if __name__ == "__main__":
    main()

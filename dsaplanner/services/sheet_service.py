"""
Spreadsheet input.
Decodes uploaded CSV/XLSX files into rows of cells and downloads public
Google Sheets through their export endpoint.
"""

import csv
import io
import logging
import re
from typing import Any, List, Optional

import httpx
from openpyxl import load_workbook

from ..errors import ParseFailure

logger = logging.getLogger(__name__)

GOOGLE_SHEETS_HOST = "docs.google.com/spreadsheets"
SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9_-]+)")

FETCH_TIMEOUT_SECONDS = 30.0


def _read_xlsx(content: bytes) -> List[List[Any]]:
    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ParseFailure(f"Could not open workbook: {e}") from e

    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _read_csv(content: bytes) -> List[List[Any]]:
    text = _decode_text(content)
    if "\x00" in text:
        raise ParseFailure("File does not look like CSV text")
    try:
        return [row for row in csv.reader(io.StringIO(text))]
    except csv.Error as e:
        raise ParseFailure(f"Malformed CSV: {e}") from e


def read_sheet_rows(filename: str, content: bytes) -> List[List[Any]]:
    """
    Decode a spreadsheet file into rows.

    Args:
        filename: Original file name (extension selects the decoder)
        content: Raw file bytes

    Returns:
        List of rows, each a list of cell values

    Raises:
        ParseFailure: if the file cannot be decoded
    """
    lower = (filename or "").lower()
    if lower.endswith(".xls"):
        raise ParseFailure("Legacy .xls workbooks are not supported; export as .xlsx or .csv")
    if lower.endswith(".xlsx"):
        rows = _read_xlsx(content)
    else:
        rows = _read_csv(content)

    logger.info("Read %d rows from %s", len(rows), filename)
    return rows


def to_export_url(url: str, fmt: str = "csv") -> str:
    """Rewrite a Google Sheets link to its export URL. Other URLs pass through."""
    if GOOGLE_SHEETS_HOST not in url or "/export" in url:
        return url

    match = SHEET_ID_PATTERN.search(url)
    if not match:
        return url

    export_url = f"https://docs.google.com/spreadsheets/d/{match.group(1)}/export?format={fmt}"

    # Keep the selected tab
    gid = re.search(r"[#&?]gid=(\d+)", url)
    if gid:
        export_url += f"&gid={gid.group(1)}"
    return export_url


async def fetch_sheet(
    url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> List[List[Any]]:
    """Download a public sheet as CSV and decode it into rows."""
    export_url = to_export_url(url, "csv")

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=FETCH_TIMEOUT_SECONDS, follow_redirects=True) as own:
                response = await own.get(export_url)
        else:
            response = await client.get(export_url)
    except httpx.HTTPError as e:
        raise ParseFailure(f"Failed to fetch sheet {url}: {e}") from e

    if response.status_code != 200:
        raise ParseFailure(
            f"Failed to fetch sheet {url}: {response.status_code} (is the sheet public?)"
        )

    return read_sheet_rows("sheet.csv", response.content)

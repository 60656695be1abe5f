from __future__ import annotations

import asyncio
import io

import httpx
import pytest
from openpyxl import Workbook

from dsaplanner.errors import ParseFailure
from dsaplanner.services.sheet_service import fetch_sheet, read_sheet_rows, to_export_url


def _xlsx_bytes(rows) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def test_read_csv_rows() -> None:
    content = "\ufeffProblem Name,Link\nTwo Sum,https://leetcode.com/problems/two-sum/\n".encode("utf-8")
    rows = read_sheet_rows("blind75.csv", content)
    assert rows == [
        ["Problem Name", "Link"],
        ["Two Sum", "https://leetcode.com/problems/two-sum/"],
    ]


def test_read_csv_falls_back_to_latin1() -> None:
    rows = read_sheet_rows("sheet.csv", "Caf\xe9 Problem,Easy\n".encode("latin-1"))
    assert rows == [["Caf\xe9 Problem", "Easy"]]


def test_read_xlsx_first_sheet() -> None:
    content = _xlsx_bytes([["#", "Problem", "Difficulty"], [1, "Two Sum", "Easy"]])
    rows = read_sheet_rows("sheet.xlsx", content)
    assert rows[0] == ["#", "Problem", "Difficulty"]
    assert rows[1] == [1, "Two Sum", "Easy"]


def test_legacy_xls_is_rejected() -> None:
    with pytest.raises(ParseFailure):
        read_sheet_rows("old.xls", b"\xd0\xcf\x11\xe0")


def test_corrupt_xlsx_raises_parse_failure() -> None:
    with pytest.raises(ParseFailure):
        read_sheet_rows("broken.xlsx", b"not a zip file")


def test_binary_content_is_not_csv() -> None:
    with pytest.raises(ParseFailure):
        read_sheet_rows("data.csv", b"abc\x00def")


@pytest.mark.parametrize(
    "url, expected",
    [
        (
            "https://docs.google.com/spreadsheets/d/abc_123-XYZ/edit#gid=42",
            "https://docs.google.com/spreadsheets/d/abc_123-XYZ/export?format=csv&gid=42",
        ),
        (
            "https://docs.google.com/spreadsheets/d/abc123/edit?usp=sharing",
            "https://docs.google.com/spreadsheets/d/abc123/export?format=csv",
        ),
        (
            "https://docs.google.com/spreadsheets/d/abc123/export?format=csv",
            "https://docs.google.com/spreadsheets/d/abc123/export?format=csv",
        ),
        ("https://example.com/problems.csv", "https://example.com/problems.csv"),
    ],
)
def test_to_export_url(url: str, expected: str) -> None:
    assert to_export_url(url) == expected


def test_fetch_sheet_uses_export_url() -> None:
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=b"Two Sum,Easy\n")

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_sheet("https://docs.google.com/spreadsheets/d/abc123/edit", client=client)

    rows = asyncio.run(run())
    assert rows == [["Two Sum", "Easy"]]
    assert requested == ["https://docs.google.com/spreadsheets/d/abc123/export?format=csv"]


def test_fetch_sheet_private_sheet_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await fetch_sheet("https://docs.google.com/spreadsheets/d/abc123/edit", client=client)

    with pytest.raises(ParseFailure):
        asyncio.run(run())

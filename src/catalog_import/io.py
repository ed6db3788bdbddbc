from __future__ import annotations
from pathlib import Path
from typing import List, Tuple


class CsvStructureError(ValueError):
    """The CSV has no header row followed by at least one data row."""


def parse_csv(text: str) -> List[List[str]]:
    """Split raw CSV text into rows of fields (RFC 4180 quoting).

    Quoted fields may hold commas, newlines and doubled quotes. Rows end at
    "\\n" or "\\r\\n"; rows whose fields are all empty are dropped, including a
    trailing row without a final newline.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    field: List[str] = []
    in_quote = False
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""
        if in_quote:
            if ch == '"' and nxt == '"':
                field.append('"')
                i += 1
            elif ch == '"':
                in_quote = False
            else:
                field.append(ch)
        elif ch == '"':
            in_quote = True
        elif ch == ',':
            row.append("".join(field))
            field = []
        elif ch == '\n' or (ch == '\r' and nxt == '\n'):
            if ch == '\r':
                i += 1
            row.append("".join(field))
            field = []
            if any(f != "" for f in row):
                rows.append(row)
            row = []
        else:
            field.append(ch)
        i += 1
    if field or row:
        row.append("".join(field))
        if any(f != "" for f in row):
            rows.append(row)
    return rows


def split_header(rows: List[List[str]]) -> Tuple[List[str], List[List[str]]]:
    if len(rows) < 2:
        raise CsvStructureError("CSV appears to be empty or invalid")
    return rows[0], rows[1:]


def read_text(input_path: Path) -> str:
    # utf-8-sig drops the BOM spreadsheet exports often carry
    return input_path.read_text(encoding="utf-8-sig")


def read_rows(input_path: Path) -> List[List[str]]:
    return parse_csv(read_text(input_path))

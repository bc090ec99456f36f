from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

"""CSV reader: file -> ordered headers + rows of raw strings.

Every cell is read as a string; pandas' NA detection is disabled so values
like "NA" or "null" reach the engine verbatim. Empty cells become "" and
rows that are empty in every column are skipped.
"""

__all__ = [
    "CsvReadError",
    "ParsedUpload",
    "read_csv_file",
]


class CsvReadError(Exception):
    """Raised when the file cannot be read or parsed as CSV."""


@dataclass
class ParsedUpload:
    headers: list[str]
    rows: list[dict[str, str]]


def read_csv_file(path: Path, *, encoding: str = "utf-8", delimiter: str = ",") -> ParsedUpload:
    """Read ``path`` into headers and row dicts.

    Parameters
    ----------
    path: CSV file
    encoding: text encoding passed to pandas
    delimiter: field separator
    """
    if not path.exists():
        raise CsvReadError(f"file not found: {path}")
    try:
        df = pd.read_csv(
            path,
            dtype=str,
            keep_default_na=False,
            na_filter=False,
            encoding=encoding,
            sep=delimiter,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return ParsedUpload(headers=[], rows=[])
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise CsvReadError(f"cannot parse {path.name}: {e}") from e

    headers = [str(c).strip() for c in df.columns]
    rows: list[dict[str, str]] = []
    for values in df.itertuples(index=False, name=None):
        # 短い行の欠損セルは NaN になり得る -> ""
        cells = ["" if v is None or (not isinstance(v, str) and pd.isna(v)) else str(v) for v in values]
        if all(c.strip() == "" for c in cells):
            continue
        rows.append(dict(zip(headers, cells, strict=False)))
    return ParsedUpload(headers=headers, rows=rows)

"""
World Bank indicator spreadsheets (wide -> long).

Each input file is a World Bank indicator download: a few preamble rows
("Data Source", "Last Updated Date", blank), then a header with

    Country Name | Country Code | Indicator Name | Indicator Code | 1960 | 1961 | ...

and one row per country. This module reshapes such a sheet into one row
per (country, year) observation:

    country_code     - string (ISO3 or World Bank aggregate code)
    country_name     - string
    indicator_code   - string
    indicator_name   - string
    year             - int
    value            - float (NaN when missing)
    data_source      - string (label of the input sheet)
"""

from __future__ import annotations

import io
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

import pandas as pd

from adapters import StorageAdapter

ID_COLUMNS = ["country_name", "country_code", "indicator_name", "indicator_code"]

OBSERVATION_COLUMNS = [
    "country_code",
    "country_name",
    "indicator_code",
    "indicator_name",
    "year",
    "value",
    "data_source",
]

DEFAULT_HEADER_ROWS = 3
DEFAULT_SHEET_NAME = "Data"

# Placeholders World Bank exports use for "no data".
MISSING_MARKERS = {"", "..", "-"}

_DIGITS = re.compile(r"\d+")


@dataclass(frozen=True)
class Observation:
    """One indicator value for one country and year."""

    country_code: str
    country_name: str
    indicator_code: str
    indicator_name: str
    year: int
    value: Optional[float]
    data_source: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "indicator_code": self.indicator_code,
            "indicator_name": self.indicator_name,
            "year": self.year,
            "value": self.value,
            "data_source": self.data_source,
        }


def normalize_column_name(name: Any) -> str:
    """Snake-case a header: 'Country Name' -> 'country_name'."""
    s = re.sub(r"[^0-9a-zA-Z]+", "_", str(name).strip())
    return s.strip("_").lower()


def parse_year_header(header: Any) -> int:
    """
    Parse a year column header into an int.

    Excel may hand back years as numbers (1960 or 1960.0); text headers may
    carry decorations around the year ("YR1960", "1960 [YR1960]"). Every
    digit run in the header must spell the same number.
    """
    if isinstance(header, bool):
        raise ValueError(f"Malformed year column header: {header!r}")
    if isinstance(header, int):
        return header
    if isinstance(header, float):
        if math.isfinite(header) and header.is_integer():
            return int(header)
        raise ValueError(f"Malformed year column header: {header!r}")

    runs = {int(run) for run in _DIGITS.findall(str(header))}
    if len(runs) != 1:
        raise ValueError(f"Malformed year column header: {header!r}")
    return runs.pop()


def read_indicator_sheet(
    source: Union[Path, str, bytes],
    *,
    header_rows: int = DEFAULT_HEADER_ROWS,
    sheet_name: str = DEFAULT_SHEET_NAME,
    file_name: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read a wide World Bank sheet, skipping the preamble rows.

    `source` is a path or the raw bytes of the file; with bytes, `file_name`
    decides the format (".csv" or Excel). Every cell is read as text so that
    numeric parsing happens in one place.
    """
    if isinstance(source, bytes):
        name = file_name or ""
        handle: Any = io.BytesIO(source)
    else:
        name = str(source)
        handle = Path(source)

    if name.lower().endswith(".csv"):
        return pd.read_csv(handle, skiprows=header_rows, dtype=str, keep_default_na=False)

    return pd.read_excel(
        handle,
        sheet_name=sheet_name,
        skiprows=header_rows,
        dtype=object,
        engine="openpyxl",
    )


def _drop_empty_unnamed_columns(df: pd.DataFrame) -> pd.DataFrame:
    # Trailing separators produce "Unnamed: 68"-style columns with no data.
    empty_unnamed = [
        col
        for col in df.columns
        if str(col).startswith("Unnamed")
        and df[col].map(lambda v: pd.isna(v) or str(v).strip() == "").all()
    ]
    return df.drop(columns=empty_unnamed)


def _to_value(cell: Any) -> float:
    if cell is None:
        return math.nan
    if isinstance(cell, (int, float)) and not isinstance(cell, bool):
        return float(cell)
    text = str(cell).strip()
    if text in MISSING_MARKERS or text.lower() == "nan":
        return math.nan
    return float(text.replace(",", ""))


def reshape_indicator_to_long(wide_df: pd.DataFrame, data_source: str) -> pd.DataFrame:
    """
    Convert a wide indicator sheet (one column per year) to long format and
    tag every row with `data_source`.

    Raises ValueError on a missing id column, a malformed year header or a
    cell that is neither empty nor numeric.
    """
    df = _drop_empty_unnamed_columns(wide_df)

    rename: Dict[Any, Any] = {}
    year_columns: Dict[Any, int] = {}
    for col in df.columns:
        normalized = normalize_column_name(col)
        if normalized in ID_COLUMNS:
            rename[col] = normalized
        else:
            try:
                year_columns[col] = parse_year_header(col)
            except ValueError as exc:
                raise ValueError(
                    f"Sheet {data_source!r}: {exc}",
                ) from exc

    missing = set(ID_COLUMNS) - set(rename.values())
    if missing:
        raise ValueError(
            f"Sheet {data_source!r} is missing required columns: {sorted(missing)}",
        )

    df = df.rename(columns=rename)
    df = df.rename(columns={col: str(year) for col, year in year_columns.items()})
    # Blank id rows (trailing separators, empty Excel rows) carry no country.
    codes = df["country_code"].map(lambda v: "" if pd.isna(v) else str(v).strip())
    df = df[codes != ""]

    long_df = df.melt(
        id_vars=ID_COLUMNS,
        value_vars=[str(year) for year in year_columns.values()],
        var_name="year",
        value_name="value",
    )

    try:
        long_df["value"] = long_df["value"].map(_to_value).astype("float64")
    except ValueError as exc:
        raise ValueError(f"Sheet {data_source!r} has a non-numeric value: {exc}") from exc

    long_df["year"] = long_df["year"].astype("int64")
    long_df["data_source"] = data_source

    for col in ["country_code", "country_name", "indicator_code", "indicator_name", "data_source"]:
        long_df[col] = long_df[col].map(lambda v: str(v).strip()).astype("string")

    return long_df[OBSERVATION_COLUMNS].reset_index(drop=True)


def load_indicator_file(
    path_or_key: Union[Path, str],
    data_source: str,
    *,
    storage: Optional[StorageAdapter] = None,
    header_rows: int = DEFAULT_HEADER_ROWS,
) -> pd.DataFrame:
    """
    Load one indicator spreadsheet as a long-format DataFrame.

    When `storage` is given, `path_or_key` is a logical key read through
    `StorageAdapter.read_raw`; otherwise it is a local path.
    """
    if storage is None:
        wide = read_indicator_sheet(Path(path_or_key), header_rows=header_rows)
    else:
        content = storage.read_raw(str(path_or_key))
        wide = read_indicator_sheet(content, header_rows=header_rows, file_name=str(path_or_key))

    long_df = reshape_indicator_to_long(wide, data_source)
    print(
        f"[loader] {data_source}: {long_df['country_code'].nunique()} countries, "
        f"{int(long_df['value'].notna().sum())} non-missing values",
    )
    return long_df


def empty_observation_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=OBSERVATION_COLUMNS).astype(
        {
            "country_code": "string",
            "country_name": "string",
            "indicator_code": "string",
            "indicator_name": "string",
            "year": "int64",
            "value": "float64",
            "data_source": "string",
        }
    )


def _optional_float(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def observations_from_dataframe(df: pd.DataFrame) -> Iterator[Observation]:
    for row in df[OBSERVATION_COLUMNS].itertuples(index=False):
        yield Observation(
            country_code=str(row.country_code),
            country_name=str(row.country_name),
            indicator_code=str(row.indicator_code),
            indicator_name=str(row.indicator_name),
            year=int(row.year),
            value=_optional_float(row.value),
            data_source=str(row.data_source),
        )


def observations_to_dataframe(observations: List[Observation]) -> pd.DataFrame:
    if not observations:
        return empty_observation_frame()
    df = pd.DataFrame([obs.to_dict() for obs in observations])
    return df.astype(empty_observation_frame().dtypes.to_dict())


__all__ = [
    "ID_COLUMNS",
    "OBSERVATION_COLUMNS",
    "DEFAULT_HEADER_ROWS",
    "Observation",
    "normalize_column_name",
    "parse_year_header",
    "read_indicator_sheet",
    "reshape_indicator_to_long",
    "load_indicator_file",
    "empty_observation_frame",
    "observations_from_dataframe",
    "observations_to_dataframe",
]

"""
Country regions
---------------

Static reference table mapping a World Bank country code (ISO3) to its
World Bank region and its two-letter ISO code:

    src/transformations/country_regions.csv

Schema:
    country_code:        string (ISO3, PK)
    short_country_code:  string (ISO2, may be empty)
    region:              string (World Bank region)

Aggregates published alongside countries in the indicator sheets
(WLD, EUU, LMC, ...) are absent and resolve to
"unknown region". The table follows the World Bank FY2024 regional
classification and is consumed through a lookup function so callers and
tests can inject their own mapping.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Dict, Optional

import pandas as pd

COUNTRY_REGIONS_CSV = Path(__file__).with_name("country_regions.csv")

REQUIRED_COLUMNS = {"country_code", "short_country_code", "region"}


@dataclass(frozen=True)
class CountryRegion:
    region: str
    short_code: Optional[str]


RegionLookup = Callable[[str], Optional[CountryRegion]]


def load_country_region_table(path: Path | str = COUNTRY_REGIONS_CSV) -> pd.DataFrame:
    """
    Load the reference CSV.

    `keep_default_na=False` matters: Namibia's ISO2 code is "NA".
    """
    table = pd.read_csv(path, dtype=str, keep_default_na=False)

    missing = REQUIRED_COLUMNS - set(table.columns)
    if missing:
        raise ValueError(
            f"Country region table {path} is missing required columns: {sorted(missing)}",
        )

    table = table[["country_code", "short_country_code", "region"]].copy()
    for col in table.columns:
        table[col] = table[col].str.strip()

    duplicated = table["country_code"][table["country_code"].duplicated()]
    if not duplicated.empty:
        raise ValueError(
            f"Country region table {path} has duplicated codes: {sorted(duplicated.unique())}",
        )
    return table


def build_region_lookup(table: pd.DataFrame) -> RegionLookup:
    """Turn a reference table into a pure `code -> CountryRegion | None` function."""
    entries: Dict[str, CountryRegion] = {}
    for row in table.itertuples(index=False):
        if not row.region:
            continue
        entries[str(row.country_code).upper()] = CountryRegion(
            region=str(row.region),
            short_code=str(row.short_country_code).upper() or None,
        )

    def lookup(country_code: str) -> Optional[CountryRegion]:
        if not isinstance(country_code, str):
            return None
        return entries.get(country_code.strip().upper())

    return lookup


@lru_cache(maxsize=1)
def default_region_lookup() -> RegionLookup:
    return build_region_lookup(load_country_region_table())


__all__ = [
    "COUNTRY_REGIONS_CSV",
    "CountryRegion",
    "RegionLookup",
    "load_country_region_table",
    "build_region_lookup",
    "default_region_lookup",
]

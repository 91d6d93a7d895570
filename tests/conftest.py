from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402
from openpyxl import Workbook  # noqa: E402

from adapters import StorageAdapter  # noqa: E402
from transformations import CountryRegion  # noqa: E402

YEARS = [2018, 2019, 2020, 2021, 2022]


class MemoryStorage(StorageAdapter):
    """In-memory StorageAdapter capturing written artefacts."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = dict(files or {})

    def write_raw(self, key: str, content: bytes) -> str:
        self.files[key] = content
        return f"memory://{key}"

    def read_raw(self, key: str) -> bytes:
        return self.files[key]

    def list_keys(self, prefix: str = "") -> List[str]:
        return sorted(k for k in self.files if k.startswith(prefix))


REGIONS = {
    "BRA": CountryRegion(region="Latin America & Caribbean", short_code="BR"),
    "DEU": CountryRegion(region="Europe & Central Asia", short_code="DE"),
    "IND": CountryRegion(region="South Asia", short_code="IN"),
    "NAM": CountryRegion(region="Sub-Saharan Africa", short_code="NA"),
}

COUNTRY_NAMES = {
    "BRA": "Brazil",
    "DEU": "Germany",
    "IND": "India",
    "NAM": "Namibia",
    "WLD": "World",
}


def fake_region_lookup(country_code: str) -> Optional[CountryRegion]:
    return REGIONS.get(country_code)


def write_indicator_xlsx(
    path: Path,
    indicator_code: str,
    indicator_name: str,
    rows: Dict[str, Sequence[object]],
    years: Sequence[int] = YEARS,
) -> Path:
    """Write a sheet laid out like a World Bank indicator download."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Data"
    ws.append(["Data Source", "World Development Indicators"])
    ws.append(["Last Updated Date", "2024-06-28"])
    ws.append([])
    ws.append(["Country Name", "Country Code", "Indicator Name", "Indicator Code", *years])
    for code, values in rows.items():
        ws.append([COUNTRY_NAMES.get(code, code), code, indicator_name, indicator_code, *values])
    wb.save(path)
    return path


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def region_lookup():
    return fake_region_lookup

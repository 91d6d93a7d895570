"""
Report settings
---------------

Constants and the indicator catalog for the recent-indicator report.

Defaults can be overridden through environment variables (or a local
`.env` file, loaded with python-dotenv without overriding variables that
are already set):

- REPORT_DATA_DIR        directory holding the four indicator spreadsheets
- REPORT_OUTPUT_DIR      directory where the table and plots are written
- REPORT_WINDOW_SIZE     number of most recent years averaged (default 5)
- REPORT_MIN_AVG_VALUE   near-zero cutoff for the log scatter (default 0.1)
- REPORT_LABEL_TOP_N     number of most populous countries labelled (default 30)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from dotenv import find_dotenv, load_dotenv

T = TypeVar("T")

DATA_DIR_ENV = "REPORT_DATA_DIR"
OUTPUT_DIR_ENV = "REPORT_OUTPUT_DIR"
WINDOW_SIZE_ENV = "REPORT_WINDOW_SIZE"
MIN_AVG_VALUE_ENV = "REPORT_MIN_AVG_VALUE"
LABEL_TOP_N_ENV = "REPORT_LABEL_TOP_N"

DEFAULT_DATA_DIR = Path("data")
DEFAULT_OUTPUT_DIR = Path("reports")


@dataclass(frozen=True)
class IndicatorSource:
    """One World Bank indicator spreadsheet consumed by the report."""

    data_source: str
    indicator_code: str
    label: str
    file_name: str
    decimals: int = 2


CUSTOMS_DUTIES = IndicatorSource(
    data_source="customs_duties",
    indicator_code="GC.TAX.IMPT.ZS",
    label="Customs and other import duties (% of tax revenue)",
    file_name="API_GC.TAX.IMPT.ZS_DS2_en_excel_v2.xlsx",
)
TARIFF_RATE = IndicatorSource(
    data_source="tariff_rate",
    indicator_code="TM.TAX.MRCH.WM.AR.ZS",
    label="Tariff rate, applied, weighted mean, all products (%)",
    file_name="API_TM.TAX.MRCH.WM.AR.ZS_DS2_en_excel_v2.xlsx",
)
GDP_PER_CAPITA = IndicatorSource(
    data_source="gdp_per_capita",
    indicator_code="NY.GDP.PCAP.CD",
    label="GDP per capita (current US$)",
    file_name="API_NY.GDP.PCAP.CD_DS2_en_excel_v2.xlsx",
    decimals=0,
)
POPULATION = IndicatorSource(
    data_source="population",
    indicator_code="SP.POP.TOTL",
    label="Population, total",
    file_name="API_SP.POP.TOTL_DS2_en_excel_v2.xlsx",
    decimals=0,
)

INDICATOR_SOURCES: List[IndicatorSource] = [
    CUSTOMS_DUTIES,
    TARIFF_RATE,
    GDP_PER_CAPITA,
    POPULATION,
]


@dataclass(frozen=True)
class ReportSettings:
    data_dir: Path = DEFAULT_DATA_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    # World Bank sheets carry "Data Source", "Last Updated Date" and a blank row
    header_rows: int = 3
    window_size: int = 5
    min_avg_value: float = 0.1
    label_top_n: int = 30
    animation_frames: int = 200
    animation_fps: int = 10
    animation_width_px: int = 600
    animation_height_px: int = 400
    sources: List[IndicatorSource] = field(default_factory=lambda: list(INDICATOR_SOURCES))
    x_source: str = GDP_PER_CAPITA.data_source
    y_source: str = CUSTOMS_DUTIES.data_source
    size_source: str = POPULATION.data_source

    def source(self, data_source: str) -> IndicatorSource:
        for src in self.sources:
            if src.data_source == data_source:
                return src
        raise KeyError(f"Unknown data source {data_source!r}")


def _env_value(name: str, cast: Callable[[str], T]) -> Optional[T]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from exc


def load_report_settings(
    env_file: Path | str | None = None,
    **overrides,
) -> ReportSettings:
    """
    Build ReportSettings from defaults, environment variables and keyword
    overrides (highest precedence, `None` values are ignored).
    """
    if env_file is not None:
        load_dotenv(env_file, override=False)
    else:
        # Search from the working directory, not from this module.
        load_dotenv(find_dotenv(usecwd=True), override=False)

    values = {
        "data_dir": _env_value(DATA_DIR_ENV, Path),
        "output_dir": _env_value(OUTPUT_DIR_ENV, Path),
        "window_size": _env_value(WINDOW_SIZE_ENV, int),
        "min_avg_value": _env_value(MIN_AVG_VALUE_ENV, float),
        "label_top_n": _env_value(LABEL_TOP_N_ENV, int),
    }
    values.update(overrides)
    values = {k: v for k, v in values.items() if v is not None}

    settings = replace(ReportSettings(), **values)
    if settings.window_size < 1:
        raise ValueError(f"window_size must be >= 1, got {settings.window_size}")
    return settings


__all__ = [
    "DEFAULT_DATA_DIR",
    "DEFAULT_OUTPUT_DIR",
    "IndicatorSource",
    "ReportSettings",
    "INDICATOR_SOURCES",
    "CUSTOMS_DUTIES",
    "TARIFF_RATE",
    "GDP_PER_CAPITA",
    "POPULATION",
    "load_report_settings",
]

"""
Summary table of recent averages.

One row per country, with its flag, name and region, then for every
indicator the recent-window average and the years it covers, e.g.

    🇧🇷 | Brazil | Latin America & Caribbean | 4.12 | 2018–2022 (5) | ...

Rendered to a standalone HTML document with pandas' Styler.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from adapters import LocalStorageAdapter, StorageAdapter
from report_settings import DEFAULT_OUTPUT_DIR, INDICATOR_SOURCES, IndicatorSource
from transformations import RegionLookup, default_region_lookup


SUMMARY_TABLE_HTML_NAME = "recent_averages_table.html"

UNKNOWN_REGION_LABEL = "Unknown"
MISSING_REPR = "–"

_REGIONAL_INDICATOR_A = 0x1F1E6

_TABLE_STYLES = [
    {"selector": "caption", "props": "caption-side: top; font-weight: bold; padding: 6px;"},
    {"selector": "th", "props": "background-color: #f0f0f0; text-align: left; padding: 4px 8px;"},
    {"selector": "td", "props": "padding: 4px 8px; border-bottom: 1px solid #e5e5e5;"},
    {"selector": "", "props": "border-collapse: collapse; font-family: sans-serif; font-size: 13px;"},
]


def country_flag(short_code: Optional[str]) -> str:
    """Flag emoji for an ISO2 code ("BR" -> 🇧🇷); empty string when unknown."""
    if not isinstance(short_code, str):
        return ""
    code = short_code.strip().upper()
    if len(code) != 2 or not code.isascii() or not code.isalpha():
        return ""
    return "".join(chr(_REGIONAL_INDICATOR_A + ord(ch) - ord("A")) for ch in code)


def period_column(src: IndicatorSource) -> str:
    return f"{src.label} (years)"


def _format_period(earliest: int, latest: int, n_years: int) -> str:
    if earliest == latest:
        return f"{earliest} (1)"
    return f"{earliest}–{latest} ({n_years})"


def pivot_recent_averages(
    averages_df: pd.DataFrame,
    *,
    sources: Sequence[IndicatorSource] = INDICATOR_SOURCES,
    region_lookup: Optional[RegionLookup] = None,
) -> pd.DataFrame:
    """
    Pivot the long recent-averages frame to one row per country.

    Columns: flag, country, region, then `<label>` and `<label> (years)` per
    indicator source. Countries are ordered by region (unknown last), then
    by name.
    """
    lookup = region_lookup or default_region_lookup()

    base_cols = ["flag", "country", "region"]
    value_cols: List[str] = []
    for src in sources:
        value_cols += [src.label, period_column(src)]

    if averages_df.empty:
        return pd.DataFrame(columns=base_cols + value_cols)

    countries = (
        averages_df[["country_code", "country_name", "region"]]
        .drop_duplicates(subset=["country_code"])
        .set_index("country_code")
    )

    table = pd.DataFrame(index=countries.index)

    def _flag(code: str) -> str:
        match = lookup(code)
        return country_flag(match.short_code) if match is not None else ""

    table["flag"] = [_flag(str(code)) for code in countries.index]
    table["country"] = countries["country_name"].astype(str)
    table["region"] = countries["region"].astype("object").where(
        countries["region"].notna(), UNKNOWN_REGION_LABEL,
    )

    for src in sources:
        sub = averages_df[averages_df["data_source"] == src.data_source]
        sub = sub.drop_duplicates(subset=["country_code"]).set_index("country_code")
        table[src.label] = sub["avg_value"].astype("float64")
        periods = pd.Series(
            [
                _format_period(int(r.earliest_year), int(r.latest_year), int(r.n_years))
                for r in sub.itertuples()
            ],
            index=sub.index,
            dtype="object",
        )
        table[period_column(src)] = periods

    table["_unknown"] = table["region"] == UNKNOWN_REGION_LABEL
    table = table.sort_values(["_unknown", "region", "country"]).drop(columns=["_unknown"])
    return table.reset_index(drop=True)[base_cols + value_cols]


def render_summary_table_html(
    table: pd.DataFrame,
    *,
    sources: Sequence[IndicatorSource] = INDICATOR_SOURCES,
    caption: Optional[str] = None,
) -> str:
    """Format numbers per indicator (decimals from the catalog) and render HTML."""
    formats = {
        src.label: f"{{:,.{src.decimals}f}}"
        for src in sources
        if src.label in table.columns
    }
    periods = [period_column(src) for src in sources if period_column(src) in table.columns]
    styler = (
        table.style.format(formats, na_rep=MISSING_REPR)
        .format(na_rep=MISSING_REPR, subset=periods)
        .hide(axis="index")
        .set_table_styles(_TABLE_STYLES)
    )
    if caption:
        styler = styler.set_caption(caption)
    return styler.to_html(doctype_html=True)


def build_summary_table(
    averages_df: pd.DataFrame,
    *,
    sources: Sequence[IndicatorSource] = INDICATOR_SOURCES,
    region_lookup: Optional[RegionLookup] = None,
    window: Optional[int] = None,
    output_dir: Path | str = DEFAULT_OUTPUT_DIR,
    storage: Optional[StorageAdapter] = None,
) -> str:
    """
    Build and write recent_averages_table.html. Returns its location.
    """
    table = pivot_recent_averages(averages_df, sources=sources, region_lookup=region_lookup)
    if table.empty:
        print("[analysis] No recent averages available; writing an empty summary table")

    caption = "Recent averages by country"
    if window is not None:
        caption = f"Average of the {window} most recent available years, by country"

    html = render_summary_table_html(table, sources=sources, caption=caption)
    store = storage or LocalStorageAdapter(output_dir)
    return store.write_raw(SUMMARY_TABLE_HTML_NAME, html.encode("utf-8"))


__all__ = [
    "SUMMARY_TABLE_HTML_NAME",
    "country_flag",
    "period_column",
    "pivot_recent_averages",
    "render_summary_table_html",
    "build_summary_table",
]

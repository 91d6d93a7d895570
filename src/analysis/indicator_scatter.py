"""
Static scatter plots of the recent averages.

One point per country:
    X axis: recent average of `x_source` (GDP per capita by default)
    Y axis: recent average of `y_source` (customs duties by default)
    Size:   recent average of `size_source` (population)
    Color:  World Bank region

Countries without a region (aggregates, unmapped codes) are left out.
The most populous `label_top_n` countries get a text label.

The report draws two variants:
- recent_average_scatter.png      log X, linear Y
- recent_average_scatter_log.png  log X and Y, Y values below
                                  `min_avg_value` filtered out as noise
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, Optional, Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.axes import Axes
from matplotlib.lines import Line2D

from adapters import LocalStorageAdapter, StorageAdapter
from report_settings import DEFAULT_OUTPUT_DIR, INDICATOR_SOURCES, IndicatorSource


SCATTER_PNG_NAME = "recent_average_scatter.png"
SCATTER_LOG_PNG_NAME = "recent_average_scatter_log.png"

DEFAULT_LABEL_TOP_N = 30

REGION_COLORS: Dict[str, str] = {
    "East Asia & Pacific": "#1f77b4",
    "Europe & Central Asia": "#ff7f0e",
    "Latin America & Caribbean": "#2ca02c",
    "Middle East & North Africa": "#d62728",
    "North America": "#9467bd",
    "South Asia": "#8c564b",
    "Sub-Saharan Africa": "#e377c2",
}
FALLBACK_COLOR = "#7f7f7f"

SCATTER_FRAME_COLUMNS = ["country_code", "country_name", "region", "x", "y", "size"]


def region_color(region: str) -> str:
    return REGION_COLORS.get(region, FALLBACK_COLOR)


def source_label(data_source: str, sources: Sequence[IndicatorSource] = INDICATOR_SOURCES) -> str:
    for src in sources:
        if src.data_source == data_source:
            return src.label
    return data_source


def marker_sizes(
    values: pd.Series,
    max_value: Optional[float] = None,
    *,
    min_size: float = 15.0,
    max_size: float = 900.0,
) -> np.ndarray:
    """Marker areas proportional to `values` (population), in points²."""
    arr = values.to_numpy(dtype="float64")
    top = max_value if max_value is not None else (np.nanmax(arr) if arr.size else 0.0)
    if not top or top <= 0:
        return np.full(arr.shape, min_size)
    return min_size + (max_size - min_size) * np.clip(arr / top, 0.0, 1.0)


def build_scatter_frame(
    averages_df: pd.DataFrame,
    *,
    x_source: str,
    y_source: str,
    size_source: str,
    min_avg_value: Optional[float] = None,
    log_x: bool = False,
    log_y: bool = False,
) -> pd.DataFrame:
    """
    Pivot recent averages to one row per country with x/y/size columns.

    Keeps rows with a known region and all three values present; log axes
    additionally require positive values. `min_avg_value` drops countries
    whose Y average is below the threshold.
    """
    known = averages_df[averages_df["region"].notna()]
    if known.empty:
        return pd.DataFrame(columns=SCATTER_FRAME_COLUMNS)

    frame = (
        known[["country_code", "country_name", "region"]]
        .drop_duplicates(subset=["country_code"])
        .set_index("country_code")
    )

    def _values(data_source: str) -> pd.Series:
        sub = known[known["data_source"] == data_source]
        sub = sub.drop_duplicates(subset=["country_code"]).set_index("country_code")
        return sub["avg_value"].astype("float64")

    frame["x"] = _values(x_source)
    frame["y"] = _values(y_source)
    frame["size"] = _values(size_source)
    frame = frame.dropna(subset=["x", "y", "size"])

    if min_avg_value is not None:
        frame = frame[frame["y"] >= min_avg_value]
    if log_x:
        frame = frame[frame["x"] > 0]
    if log_y:
        frame = frame[frame["y"] > 0]

    frame = frame.reset_index()
    frame["country_name"] = frame["country_name"].astype(str)
    frame["region"] = frame["region"].astype(str)
    return frame[SCATTER_FRAME_COLUMNS]


def select_label_rows(frame: pd.DataFrame, top_n: int = DEFAULT_LABEL_TOP_N) -> pd.DataFrame:
    """The `top_n` rows with the largest size (population)."""
    if top_n <= 0 or frame.empty:
        return frame.iloc[0:0]
    return frame.nlargest(top_n, "size")


def draw_region_scatter(
    ax: Axes,
    frame: pd.DataFrame,
    *,
    size_max: Optional[float] = None,
    label_top_n: int = DEFAULT_LABEL_TOP_N,
    regions: Optional[Sequence[str]] = None,
    max_marker_size: float = 900.0,
) -> None:
    """
    Draw one scatter layer per region plus labels for the most populous
    countries. `regions` fixes the legend entries (the animation keeps it
    constant across frames).
    """
    for region, group in frame.groupby("region", sort=True):
        ax.scatter(
            group["x"],
            group["y"],
            s=marker_sizes(group["size"], size_max, max_size=max_marker_size),
            color=region_color(str(region)),
            alpha=0.7,
            edgecolors="white",
            linewidths=0.5,
        )

    for row in select_label_rows(frame, label_top_n).itertuples(index=False):
        ax.annotate(
            row.country_name,
            (row.x, row.y),
            textcoords="offset points",
            xytext=(4, 4),
            fontsize=7,
            color="black",
            alpha=0.8,
        )

    legend_regions = list(regions) if regions is not None else sorted(frame["region"].unique())
    handles = [
        Line2D([0], [0], marker="o", linestyle="", color=region_color(r), label=r)
        for r in legend_regions
    ]
    if handles:
        ax.legend(handles=handles, title="Region", frameon=False, fontsize=7, title_fontsize=8)


def build_recent_average_scatter(
    averages_df: pd.DataFrame,
    *,
    x_source: str,
    y_source: str,
    size_source: str,
    sources: Sequence[IndicatorSource] = INDICATOR_SOURCES,
    log_x: bool = True,
    log_y: bool = False,
    min_avg_value: Optional[float] = None,
    label_top_n: int = DEFAULT_LABEL_TOP_N,
    file_name: str = SCATTER_PNG_NAME,
    output_dir: Path | str = DEFAULT_OUTPUT_DIR,
    storage: Optional[StorageAdapter] = None,
) -> str:
    """
    Render the recent-average scatter plot and write it as PNG.

    Returns the location of the written file.
    """
    frame = build_scatter_frame(
        averages_df,
        x_source=x_source,
        y_source=y_source,
        size_source=size_source,
        min_avg_value=min_avg_value,
        log_x=log_x,
        log_y=log_y,
    )
    if frame.empty:
        raise RuntimeError(
            f"No countries with {x_source}, {y_source} and {size_source} averages to plot",
        )

    fig, ax = plt.subplots(figsize=(10, 6))
    draw_region_scatter(ax, frame, label_top_n=label_top_n)

    if log_x:
        ax.set_xscale("log")
    if log_y:
        ax.set_yscale("log")

    ax.set_xlabel(source_label(x_source, sources))
    ax.set_ylabel(source_label(y_source, sources))
    title = f"{source_label(y_source, sources)} vs {source_label(x_source, sources)}"
    if min_avg_value is not None:
        title += f" (values >= {min_avg_value:g})"
    ax.set_title(title, fontsize=10)
    ax.grid(True, linestyle="--", alpha=0.3)
    fig.tight_layout()

    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150)
    plt.close(fig)

    store = storage or LocalStorageAdapter(output_dir)
    location = store.write_raw(file_name, buf.getvalue())
    print(f"[analysis] Scatter with {len(frame)} countries: {location}")
    return location


__all__ = [
    "SCATTER_PNG_NAME",
    "SCATTER_LOG_PNG_NAME",
    "REGION_COLORS",
    "region_color",
    "source_label",
    "marker_sizes",
    "build_scatter_frame",
    "select_label_rows",
    "draw_region_scatter",
    "build_recent_average_scatter",
]

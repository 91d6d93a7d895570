"""
Animated scatter of the yearly indicator values.

Same encoding as the static scatter (X/Y indicators, size = population,
color = region) but drawn from the yearly observations instead of the
recent averages, one state per year. The animation has a fixed number of
frames spread evenly over the available years; frames falling between two
years show a linear tween of the countries present in both, while
countries present in only one of them snap to the nearer year.

Output: indicator_animation.gif (600x400 px, 200 frames, 10 fps by default).
"""

from __future__ import annotations

import math
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.animation import FuncAnimation, PillowWriter

from adapters import LocalStorageAdapter, StorageAdapter
from report_settings import DEFAULT_OUTPUT_DIR, INDICATOR_SOURCES, IndicatorSource

from .indicator_scatter import DEFAULT_LABEL_TOP_N, draw_region_scatter, source_label

ANIMATION_GIF_NAME = "indicator_animation.gif"

DEFAULT_FRAMES = 200
DEFAULT_FPS = 10
DEFAULT_WIDTH_PX = 600
DEFAULT_HEIGHT_PX = 400
DEFAULT_DPI = 100

PANEL_COLUMNS = ["country_code", "country_name", "region", "year", "x", "y", "size"]


def build_country_year_panel(
    combined_df: pd.DataFrame,
    *,
    x_source: str,
    y_source: str,
    size_source: str,
    log_x: bool = False,
    log_y: bool = False,
) -> pd.DataFrame:
    """
    One row per (country, year) holding the x/y/size indicator values.

    Only countries with a known region and years where all three values
    are present are kept; log axes additionally require positive values.
    """
    known = combined_df[combined_df["region"].notna() & combined_df["value"].notna()]
    if known.empty:
        return pd.DataFrame(columns=PANEL_COLUMNS)

    wide = known.pivot_table(
        index=["country_code", "year"],
        columns="data_source",
        values="value",
        aggfunc="first",
    )
    needed = [x_source, y_source, size_source]
    if any(src not in wide.columns for src in needed):
        return pd.DataFrame(columns=PANEL_COLUMNS)

    panel = wide[needed].copy()
    panel.columns = ["x", "y", "size"]
    panel = panel.dropna().reset_index()

    if log_x:
        panel = panel[panel["x"] > 0]
    if log_y:
        panel = panel[panel["y"] > 0]

    names = (
        known[["country_code", "country_name", "region"]]
        .drop_duplicates(subset=["country_code"])
    )
    panel = panel.merge(names, on="country_code", how="left")
    panel["country_code"] = panel["country_code"].astype(str)
    panel["country_name"] = panel["country_name"].astype(str)
    panel["region"] = panel["region"].astype(str)
    panel["year"] = panel["year"].astype("int64")

    return panel.sort_values(["year", "country_code"]).reset_index(drop=True)[PANEL_COLUMNS]


def frame_positions(n_years: int, n_frames: int = DEFAULT_FRAMES) -> np.ndarray:
    """Fractional year indices (0 .. n_years - 1) for each frame."""
    if n_frames < 1:
        raise ValueError(f"n_frames must be >= 1, got {n_frames}")
    if n_years <= 1:
        return np.zeros(n_frames)
    return np.linspace(0.0, float(n_years - 1), n_frames)


def _bracket(years: Sequence[int], position: float) -> Tuple[int, float]:
    k = min(int(math.floor(position)), len(years) - 1)
    return k, position - k


def frame_year(years: Sequence[int], position: float) -> float:
    k, t = _bracket(years, position)
    if t == 0 or k + 1 >= len(years):
        return float(years[k])
    return years[k] + t * (years[k + 1] - years[k])


def interpolate_frame(
    panel: pd.DataFrame,
    years: Sequence[int],
    position: float,
) -> pd.DataFrame:
    """Country states at a fractional year position."""
    k, t = _bracket(years, position)
    start = panel[panel["year"] == years[k]].set_index("country_code")
    if t == 0 or k + 1 >= len(years):
        return start.reset_index()[PANEL_COLUMNS]

    end = panel[panel["year"] == years[k + 1]].set_index("country_code")
    common = start.index.intersection(end.index)

    tween = start.loc[common].copy()
    for col in ["x", "y", "size"]:
        tween[col] = start.loc[common, col] * (1.0 - t) + end.loc[common, col] * t

    if t < 0.5:
        unmatched = start.loc[start.index.difference(end.index)]
    else:
        unmatched = end.loc[end.index.difference(start.index)]

    return pd.concat([tween, unmatched]).reset_index()[PANEL_COLUMNS]


def _axis_limits(values: pd.Series, log: bool) -> Tuple[float, float]:
    lo, hi = float(values.min()), float(values.max())
    if log:
        return lo / 1.5, hi * 1.5
    pad = (hi - lo) * 0.05 or max(abs(hi), 1.0) * 0.05
    return lo - pad, hi + pad


def build_indicator_animation(
    combined_df: pd.DataFrame,
    *,
    x_source: str,
    y_source: str,
    size_source: str,
    sources: Sequence[IndicatorSource] = INDICATOR_SOURCES,
    log_x: bool = True,
    log_y: bool = False,
    label_top_n: int = DEFAULT_LABEL_TOP_N,
    n_frames: int = DEFAULT_FRAMES,
    fps: int = DEFAULT_FPS,
    width_px: int = DEFAULT_WIDTH_PX,
    height_px: int = DEFAULT_HEIGHT_PX,
    dpi: int = DEFAULT_DPI,
    file_name: str = ANIMATION_GIF_NAME,
    output_dir: Path | str = DEFAULT_OUTPUT_DIR,
    storage: Optional[StorageAdapter] = None,
) -> str:
    """
    Render the animated scatter as GIF and write it. Returns its location.
    """
    panel = build_country_year_panel(
        combined_df,
        x_source=x_source,
        y_source=y_source,
        size_source=size_source,
        log_x=log_x,
        log_y=log_y,
    )
    if panel.empty:
        raise RuntimeError(
            f"No country-year rows with {x_source}, {y_source} and {size_source} to animate",
        )

    years: List[int] = sorted(int(y) for y in panel["year"].unique())
    positions = frame_positions(len(years), n_frames)
    size_max = float(panel["size"].max())
    regions = sorted(panel["region"].unique())
    xlim = _axis_limits(panel["x"], log_x)
    ylim = _axis_limits(panel["y"], log_y)
    x_label = source_label(x_source, sources)
    y_label = source_label(y_source, sources)

    fig, ax = plt.subplots(figsize=(width_px / dpi, height_px / dpi), dpi=dpi)

    def update(frame_idx: int):
        ax.clear()
        position = float(positions[frame_idx])
        state = interpolate_frame(panel, years, position)
        draw_region_scatter(
            ax,
            state,
            size_max=size_max,
            label_top_n=label_top_n,
            regions=regions,
            max_marker_size=300.0,
        )
        if log_x:
            ax.set_xscale("log")
        if log_y:
            ax.set_yscale("log")
        ax.set_xlim(*xlim)
        ax.set_ylim(*ylim)
        ax.set_xlabel(x_label, fontsize=7)
        ax.set_ylabel(y_label, fontsize=7)
        ax.tick_params(labelsize=6)
        ax.set_title(f"Year: {int(round(frame_year(years, position)))}", fontsize=9)
        ax.grid(True, linestyle="--", alpha=0.3)
        return []

    anim = FuncAnimation(fig, update, frames=n_frames, repeat=False)

    # PillowWriter needs a real file; the bytes then go through the storage adapter.
    with tempfile.TemporaryDirectory() as tmp_dir:
        tmp_path = Path(tmp_dir) / file_name
        anim.save(str(tmp_path), writer=PillowWriter(fps=fps), dpi=dpi)
        content = tmp_path.read_bytes()
    plt.close(fig)

    store = storage or LocalStorageAdapter(output_dir)
    location = store.write_raw(file_name, content)
    print(
        f"[analysis] Animation with {n_frames} frames over {years[0]}-{years[-1]}: {location}",
    )
    return location


__all__ = [
    "ANIMATION_GIF_NAME",
    "DEFAULT_FRAMES",
    "DEFAULT_FPS",
    "build_country_year_panel",
    "frame_positions",
    "frame_year",
    "interpolate_frame",
    "build_indicator_animation",
]

"""
Local orchestration entrypoint for the recent-indicator report.

Runs, in order:

1. Loading of the four World Bank indicator spreadsheets (wide -> long)
2. Combination of the long frames, with region / ISO2 annotation
3. Recent-window averages per (country, indicator)
4. Summary table (HTML)
5. Static scatter plots (linear Y and log-log)
6. Animated scatter plot (GIF)

Intended usage (local):

    PYTHONPATH=src python -m local_pipeline

Defaults come from `report_settings` (and therefore from the environment
or a `.env` file); the command line options below take precedence, e.g.

    PYTHONPATH=src python -m local_pipeline --data-dir data --window 3
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from adapters import LocalStorageAdapter, StorageAdapter
from analysis import (
    SCATTER_LOG_PNG_NAME,
    SCATTER_PNG_NAME,
    build_indicator_animation,
    build_recent_average_scatter,
    build_summary_table,
)
from report_settings import ReportSettings, load_report_settings
from transformations import (
    RegionLookup,
    build_recent_averages_dataframe,
    combine_indicator_frames,
    default_region_lookup,
    load_indicator_file,
)


def load_indicator_frames(
    settings: ReportSettings,
    storage: StorageAdapter,
) -> List[pd.DataFrame]:
    missing = [src.file_name for src in settings.sources if not storage.exists(src.file_name)]
    if missing:
        raise FileNotFoundError(f"Missing indicator spreadsheets: {', '.join(missing)}")

    frames: List[pd.DataFrame] = []
    for src in settings.sources:
        frames.append(
            load_indicator_file(
                src.file_name,
                src.data_source,
                storage=storage,
                header_rows=settings.header_rows,
            )
        )
    return frames


def run_local_pipeline(
    settings: Optional[ReportSettings] = None,
    *,
    region_lookup: Optional[RegionLookup] = None,
    input_storage: Optional[StorageAdapter] = None,
    output_storage: Optional[StorageAdapter] = None,
) -> Dict[str, List[str]]:
    """
    Run the full report end-to-end.

    Parameters
    ----------
    settings:
        Report settings; defaults to `load_report_settings()`.
    region_lookup:
        Country code -> region function; defaults to the packaged
        reference table.
    input_storage, output_storage:
        Where spreadsheets are read from and artefacts written to; default
        to local directories `settings.data_dir` and `settings.output_dir`.

    Returns
    -------
    artefacts:
        Dictionary mapping step names to lists of generated locations.
    """
    settings = settings or load_report_settings()
    lookup = region_lookup or default_region_lookup()
    inputs = input_storage or LocalStorageAdapter(settings.data_dir)
    outputs = output_storage or LocalStorageAdapter(settings.output_dir)

    # Unknown plot axes fail here (KeyError) rather than after loading.
    axis_names = (settings.x_source, settings.y_source, settings.size_source)
    axes = [settings.source(name) for name in axis_names]
    print("[pipeline] Plot axes (x / y / size): " + " / ".join(src.indicator_code for src in axes))

    artefacts: Dict[str, List[str]] = {}

    # 1. Loading
    print(f"[1/6] Loading {len(settings.sources)} indicator spreadsheets...")
    frames = load_indicator_frames(settings, inputs)
    print(f"      Loaded {sum(len(f) for f in frames)} observations.")

    # 2. Combination
    print("[2/6] Combining indicators and annotating regions...")
    combined = combine_indicator_frames(frames, region_lookup=lookup)
    print(f"      Combined dataset: {len(combined)} rows.")

    # 3. Recent averages
    print(f"[3/6] Averaging the {settings.window_size} most recent available years...")
    averages = build_recent_averages_dataframe(combined, window=settings.window_size)
    print(f"      {len(averages)} recent averages.")

    # 4. Summary table
    print("[4/6] Rendering summary table...")
    table_location = build_summary_table(
        averages,
        sources=settings.sources,
        region_lookup=lookup,
        window=settings.window_size,
        storage=outputs,
    )
    artefacts["summary_table"] = [table_location]
    print(f"      Table: {table_location}")

    # 5. Static scatter plots
    print("[5/6] Drawing recent-average scatter plots...")
    scatter_kwargs = dict(
        x_source=settings.x_source,
        y_source=settings.y_source,
        size_source=settings.size_source,
        sources=settings.sources,
        label_top_n=settings.label_top_n,
        storage=outputs,
    )
    scatter_location = build_recent_average_scatter(
        averages,
        log_x=True,
        log_y=False,
        file_name=SCATTER_PNG_NAME,
        **scatter_kwargs,
    )
    scatter_log_location = build_recent_average_scatter(
        averages,
        log_x=True,
        log_y=True,
        min_avg_value=settings.min_avg_value,
        file_name=SCATTER_LOG_PNG_NAME,
        **scatter_kwargs,
    )
    artefacts["scatter"] = [scatter_location, scatter_log_location]
    print(f"      Scatter: {scatter_location}")
    print(f"      Scatter (log): {scatter_log_location}")

    # 6. Animation
    print(f"[6/6] Rendering animated scatter ({settings.animation_frames} frames)...")
    animation_location = build_indicator_animation(
        combined,
        x_source=settings.x_source,
        y_source=settings.y_source,
        size_source=settings.size_source,
        sources=settings.sources,
        label_top_n=settings.label_top_n,
        n_frames=settings.animation_frames,
        fps=settings.animation_fps,
        width_px=settings.animation_width_px,
        height_px=settings.animation_height_px,
        storage=outputs,
    )
    artefacts["animation"] = [animation_location]
    print(f"      Animation: {animation_location}")

    print("\nReport completed successfully.")
    return artefacts


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Build the World Bank recent-indicator report end-to-end.",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=None,
        help="Directory holding the indicator spreadsheets.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory where the table and plots are written.",
    )
    parser.add_argument(
        "--window",
        type=int,
        default=None,
        help="Number of most recent available years to average.",
    )
    parser.add_argument(
        "--min-avg-value",
        type=float,
        default=None,
        help="Minimum Y average kept in the log-log scatter.",
    )
    parser.add_argument(
        "--label-top-n",
        type=int,
        default=None,
        help="Number of most populous countries labelled in the plots.",
    )

    args = parser.parse_args()
    run_local_pipeline(
        load_report_settings(
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            window_size=args.window,
            min_avg_value=args.min_avg_value,
            label_top_n=args.label_top_n,
        )
    )


__all__ = ["load_indicator_frames", "run_local_pipeline"]

from __future__ import annotations

import pandas as pd
import pytest

from analysis.indicator_scatter import (
    SCATTER_LOG_PNG_NAME,
    SCATTER_PNG_NAME,
    build_recent_average_scatter,
    build_scatter_frame,
    marker_sizes,
    region_color,
    select_label_rows,
)
from conftest import MemoryStorage
from report_settings import CUSTOMS_DUTIES, GDP_PER_CAPITA, POPULATION
from transformations.recent_averages import RecentAverage, recent_averages_to_dataframe

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

AXES = dict(
    x_source=GDP_PER_CAPITA.data_source,
    y_source=CUSTOMS_DUTIES.data_source,
    size_source=POPULATION.data_source,
)


def _averages(rows) -> pd.DataFrame:
    records = []
    for code, name, region, gdp, duties, population in rows:
        for src, value in [(GDP_PER_CAPITA, gdp), (CUSTOMS_DUTIES, duties), (POPULATION, population)]:
            if value is None:
                continue
            records.append(
                RecentAverage(
                    country_code=code,
                    country_name=name,
                    indicator_code=src.indicator_code,
                    indicator_name=src.label,
                    region=region,
                    data_source=src.data_source,
                    avg_value=value,
                    earliest_year=2018,
                    latest_year=2022,
                    n_years=5,
                )
            )
    return recent_averages_to_dataframe(records)


ROWS = [
    ("BRA", "Brazil", "Latin America & Caribbean", 8700.0, 4.1, 2.1e8),
    ("IND", "India", "South Asia", 2300.0, 14.3, 1.4e9),
    ("DEU", "Germany", "Europe & Central Asia", 48000.0, 0.0, 8.4e7),
    ("NAM", "Namibia", "Sub-Saharan Africa", 4500.0, 0.05, 2.5e6),
    ("WLD", "World", None, 12000.0, 3.0, 8.0e9),
    ("CHN", "China", "East Asia & Pacific", 12500.0, None, 1.4e9),
]


def test_frame_keeps_known_regions_with_all_values():
    frame = build_scatter_frame(_averages(ROWS), **AXES)

    assert list(frame["country_code"]) == ["BRA", "IND", "DEU", "NAM"]
    india = frame.set_index("country_code").loc["IND"]
    assert (india["x"], india["y"], india["size"]) == (2300.0, 14.3, 1.4e9)


def test_frame_applies_near_zero_threshold():
    frame = build_scatter_frame(_averages(ROWS), min_avg_value=0.1, **AXES)

    assert set(frame["country_code"]) == {"BRA", "IND"}


def test_frame_drops_non_positive_values_on_log_axes():
    frame = build_scatter_frame(_averages(ROWS), log_y=True, **AXES)

    assert "DEU" not in set(frame["country_code"])
    assert "NAM" in set(frame["country_code"])


def test_labels_go_to_most_populous_countries():
    frame = build_scatter_frame(_averages(ROWS), **AXES)

    assert list(select_label_rows(frame, 2)["country_code"]) == ["IND", "BRA"]
    assert select_label_rows(frame, 0).empty
    assert len(select_label_rows(frame, 30)) == len(frame)


def test_marker_sizes_scale_with_population():
    sizes = marker_sizes(pd.Series([0.0, 50.0, 100.0]), min_size=10.0, max_size=110.0)

    assert list(sizes) == [10.0, 60.0, 110.0]


def test_unknown_region_color_falls_back_to_grey():
    assert region_color("South Asia") != region_color("Atlantis")


def test_scatter_png_written_through_storage():
    storage = MemoryStorage()

    location = build_recent_average_scatter(_averages(ROWS), label_top_n=2, storage=storage, **AXES)

    assert location == f"memory://{SCATTER_PNG_NAME}"
    assert storage.files[SCATTER_PNG_NAME].startswith(PNG_SIGNATURE)


def test_log_log_scatter_variant():
    storage = MemoryStorage()

    build_recent_average_scatter(
        _averages(ROWS),
        log_y=True,
        min_avg_value=0.1,
        file_name=SCATTER_LOG_PNG_NAME,
        storage=storage,
        **AXES,
    )

    assert list(storage.files) == [SCATTER_LOG_PNG_NAME]


def test_scatter_without_plottable_rows_raises():
    only_aggregates = _averages([("WLD", "World", None, 12000.0, 3.0, 8.0e9)])

    with pytest.raises(RuntimeError):
        build_recent_average_scatter(only_aggregates, storage=MemoryStorage(), **AXES)

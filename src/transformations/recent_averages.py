"""
Recent averages per (country, indicator).

For every group of observations sharing

    (country_code, country_name, indicator_code, indicator_name, region, data_source)

the most recent `window` non-missing yearly values are averaged:

1. missing values are discarded; a group left empty produces no output;
2. the remaining observations are sorted by year, most recent first;
3. the first min(window, count) are kept;
4. avg_value is their arithmetic mean, earliest_year/latest_year the year
   range of that subset and n_years its size.

Observations sharing a year keep their input order (Python's sort is
stable), so the selection is deterministic for a given input. The
function is pure: same input, same output, no side effects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .combined_indicators import EnrichedObservation, enriched_observations_from_dataframe

DEFAULT_WINDOW = 5

GroupKey = Tuple[str, str, str, str, Optional[str], str]

RECENT_AVERAGE_COLUMNS = [
    "country_code",
    "country_name",
    "indicator_code",
    "indicator_name",
    "region",
    "data_source",
    "avg_value",
    "earliest_year",
    "latest_year",
    "n_years",
]


@dataclass(frozen=True)
class RecentAverage:
    country_code: str
    country_name: str
    indicator_code: str
    indicator_name: str
    region: Optional[str]
    data_source: str
    avg_value: float
    earliest_year: int
    latest_year: int
    n_years: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "indicator_code": self.indicator_code,
            "indicator_name": self.indicator_name,
            "region": self.region,
            "data_source": self.data_source,
            "avg_value": self.avg_value,
            "earliest_year": self.earliest_year,
            "latest_year": self.latest_year,
            "n_years": self.n_years,
        }


def group_key(record: EnrichedObservation) -> GroupKey:
    return (
        record.country_code,
        record.country_name,
        record.indicator_code,
        record.indicator_name,
        record.region,
        record.data_source,
    )


def group_observations(
    records: Iterable[EnrichedObservation],
) -> Dict[GroupKey, List[EnrichedObservation]]:
    """Group records by key, preserving first-seen group order and record order."""
    groups: Dict[GroupKey, List[EnrichedObservation]] = {}
    for record in records:
        groups.setdefault(group_key(record), []).append(record)
    return groups


def _is_missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def summarize_recent_window(
    key: GroupKey,
    observations: Sequence[EnrichedObservation],
    window: int = DEFAULT_WINDOW,
) -> Optional[RecentAverage]:
    """Average the `window` most recent non-missing observations of one group."""
    present = [obs for obs in observations if not _is_missing(obs.value)]
    if not present:
        return None

    recent = sorted(present, key=lambda obs: obs.year, reverse=True)[:window]
    values = [obs.value for obs in recent]
    years = [obs.year for obs in recent]

    country_code, country_name, indicator_code, indicator_name, region, data_source = key
    return RecentAverage(
        country_code=country_code,
        country_name=country_name,
        indicator_code=indicator_code,
        indicator_name=indicator_name,
        region=region,
        data_source=data_source,
        avg_value=sum(values) / len(values),
        earliest_year=min(years),
        latest_year=max(years),
        n_years=len(recent),
    )


def compute_recent_averages(
    records: Iterable[EnrichedObservation],
    window: int = DEFAULT_WINDOW,
) -> List[RecentAverage]:
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")

    averages: List[RecentAverage] = []
    for key, observations in group_observations(records).items():
        summary = summarize_recent_window(key, observations, window)
        if summary is not None:
            averages.append(summary)
    return averages


def empty_recent_averages_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=RECENT_AVERAGE_COLUMNS).astype(
        {
            "country_code": "string",
            "country_name": "string",
            "indicator_code": "string",
            "indicator_name": "string",
            "region": "string",
            "data_source": "string",
            "avg_value": "float64",
            "earliest_year": "int64",
            "latest_year": "int64",
            "n_years": "int64",
        }
    )


def recent_averages_to_dataframe(averages: Sequence[RecentAverage]) -> pd.DataFrame:
    if not averages:
        return empty_recent_averages_frame()
    df = pd.DataFrame([avg.to_dict() for avg in averages])
    return df.astype(empty_recent_averages_frame().dtypes.to_dict())


def build_recent_averages_dataframe(
    combined_df: pd.DataFrame,
    window: int = DEFAULT_WINDOW,
) -> pd.DataFrame:
    """
    DataFrame entry point: combined long frame in, one row per
    (country, indicator) with the recent-window average out.
    """
    records = enriched_observations_from_dataframe(combined_df)
    averages = compute_recent_averages(records, window=window)
    print(
        f"[averages] {len(averages)} (country, indicator) groups averaged "
        f"over the last {window} available years",
    )
    return recent_averages_to_dataframe(averages)


__all__ = [
    "DEFAULT_WINDOW",
    "RECENT_AVERAGE_COLUMNS",
    "GroupKey",
    "RecentAverage",
    "group_key",
    "group_observations",
    "summarize_recent_window",
    "compute_recent_averages",
    "empty_recent_averages_frame",
    "recent_averages_to_dataframe",
    "build_recent_averages_dataframe",
]

"""
Combined indicators dataset.

Concatenates the long-format frames of the individual indicator sheets and
annotates every row with

    region               - World Bank region (NA when the code is unknown)
    short_country_code   - ISO2 code (NA when unknown)

using an injected region lookup (see `country_regions`). Rows of unknown
countries are kept: they still take part in the recent averages and the
summary table, only the region-colored plots leave them out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from .country_regions import RegionLookup, default_region_lookup
from .world_bank_indicators import (
    OBSERVATION_COLUMNS,
    Observation,
    empty_observation_frame,
)

ENRICHED_COLUMNS = OBSERVATION_COLUMNS + ["region", "short_country_code"]


@dataclass(frozen=True)
class EnrichedObservation:
    country_code: str
    country_name: str
    indicator_code: str
    indicator_name: str
    year: int
    value: Optional[float]
    data_source: str
    region: Optional[str]
    short_country_code: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "country_code": self.country_code,
            "country_name": self.country_name,
            "indicator_code": self.indicator_code,
            "indicator_name": self.indicator_name,
            "year": self.year,
            "value": self.value,
            "data_source": self.data_source,
            "region": self.region,
            "short_country_code": self.short_country_code,
        }


def resolve_region(
    country_code: str,
    region_lookup: RegionLookup,
) -> Tuple[Optional[str], Optional[str]]:
    """(region, short_country_code) for a code; (None, None) when unknown."""
    match = region_lookup(country_code)
    if match is None:
        return None, None
    return match.region, match.short_code or None


def enrich_observation(
    observation: Observation,
    region_lookup: RegionLookup,
) -> EnrichedObservation:
    region, short_code = resolve_region(observation.country_code, region_lookup)
    return EnrichedObservation(
        country_code=observation.country_code,
        country_name=observation.country_name,
        indicator_code=observation.indicator_code,
        indicator_name=observation.indicator_name,
        year=observation.year,
        value=observation.value,
        data_source=observation.data_source,
        region=region,
        short_country_code=short_code,
    )


def empty_enriched_frame() -> pd.DataFrame:
    df = empty_observation_frame()
    df["region"] = pd.Series(dtype="string")
    df["short_country_code"] = pd.Series(dtype="string")
    return df


def combine_indicator_frames(
    frames: Iterable[pd.DataFrame],
    region_lookup: Optional[RegionLookup] = None,
) -> pd.DataFrame:
    """
    Concatenate long indicator frames and add region/short code columns.

    `region_lookup` defaults to the packaged reference table.
    """
    lookup = region_lookup or default_region_lookup()

    frames = [f for f in frames if not f.empty]
    if not frames:
        return empty_enriched_frame()

    combined = pd.concat(frames, ignore_index=True)

    # Resolve every distinct code once instead of once per row.
    codes = combined["country_code"].dropna().unique()
    resolved = {code: resolve_region(str(code), lookup) for code in codes}

    def _field(code: Any, idx: int) -> Any:
        value = resolved.get(code, (None, None))[idx]
        return pd.NA if value is None else value

    combined["region"] = combined["country_code"].map(lambda c: _field(c, 0)).astype("string")
    combined["short_country_code"] = combined["country_code"].map(
        lambda c: _field(c, 1),
    ).astype("string")

    unmapped = sorted(str(code) for code, (region, _) in resolved.items() if region is None)
    if unmapped:
        print(
            f"[combine] {len(unmapped)} country codes without a region "
            f"(kept, excluded from region plots): {', '.join(unmapped[:10])}"
            + (" ..." if len(unmapped) > 10 else ""),
        )

    return combined[ENRICHED_COLUMNS]


def _optional_str(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return str(value)


def _optional_float(value: Any) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def enriched_observations_from_dataframe(df: pd.DataFrame) -> Iterator[EnrichedObservation]:
    for row in df[ENRICHED_COLUMNS].itertuples(index=False):
        yield EnrichedObservation(
            country_code=str(row.country_code),
            country_name=str(row.country_name),
            indicator_code=str(row.indicator_code),
            indicator_name=str(row.indicator_name),
            year=int(row.year),
            value=_optional_float(row.value),
            data_source=str(row.data_source),
            region=_optional_str(row.region),
            short_country_code=_optional_str(row.short_country_code),
        )


def enriched_observations_to_dataframe(records: List[EnrichedObservation]) -> pd.DataFrame:
    if not records:
        return empty_enriched_frame()
    df = pd.DataFrame([rec.to_dict() for rec in records])
    return df.astype(empty_enriched_frame().dtypes.to_dict())


__all__ = [
    "ENRICHED_COLUMNS",
    "EnrichedObservation",
    "resolve_region",
    "enrich_observation",
    "empty_enriched_frame",
    "combine_indicator_frames",
    "enriched_observations_from_dataframe",
    "enriched_observations_to_dataframe",
]

"""
Transformations layer
----------------------

Modules that turn the World Bank indicator spreadsheets into the long,
region-annotated dataset and its recent-period averages.
"""

from .world_bank_indicators import (  # noqa: F401
    Observation,
    load_indicator_file,
    normalize_column_name,
    parse_year_header,
    read_indicator_sheet,
    reshape_indicator_to_long,
)
from .country_regions import (  # noqa: F401
    COUNTRY_REGIONS_CSV,
    CountryRegion,
    RegionLookup,
    build_region_lookup,
    default_region_lookup,
    load_country_region_table,
)
from .combined_indicators import (  # noqa: F401
    EnrichedObservation,
    combine_indicator_frames,
    enrich_observation,
    resolve_region,
)
from .recent_averages import (  # noqa: F401
    DEFAULT_WINDOW,
    RecentAverage,
    build_recent_averages_dataframe,
    compute_recent_averages,
)

__all__ = [
    "Observation",
    "EnrichedObservation",
    "RecentAverage",
    "CountryRegion",
    "RegionLookup",
    "COUNTRY_REGIONS_CSV",
    "DEFAULT_WINDOW",
    "normalize_column_name",
    "parse_year_header",
    "read_indicator_sheet",
    "reshape_indicator_to_long",
    "load_indicator_file",
    "load_country_region_table",
    "build_region_lookup",
    "default_region_lookup",
    "resolve_region",
    "enrich_observation",
    "combine_indicator_frames",
    "compute_recent_averages",
    "build_recent_averages_dataframe",
]

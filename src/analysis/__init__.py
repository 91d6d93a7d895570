"""
Analysis layer
--------------

Functions responsible for generating the report outputs from the recent
averages and the combined yearly observations:

- recent_averages_table.html
- recent_average_scatter.png
- recent_average_scatter_log.png
- indicator_animation.gif
"""

from .summary_table import (  # noqa: F401
    SUMMARY_TABLE_HTML_NAME,
    build_summary_table,
    country_flag,
    pivot_recent_averages,
    render_summary_table_html,
)
from .indicator_scatter import (  # noqa: F401
    SCATTER_LOG_PNG_NAME,
    SCATTER_PNG_NAME,
    build_recent_average_scatter,
    build_scatter_frame,
    select_label_rows,
)
from .indicator_animation import (  # noqa: F401
    ANIMATION_GIF_NAME,
    build_country_year_panel,
    build_indicator_animation,
    frame_positions,
    interpolate_frame,
)

__all__ = [
    "SUMMARY_TABLE_HTML_NAME",
    "SCATTER_PNG_NAME",
    "SCATTER_LOG_PNG_NAME",
    "ANIMATION_GIF_NAME",
    "country_flag",
    "pivot_recent_averages",
    "render_summary_table_html",
    "build_summary_table",
    "build_scatter_frame",
    "select_label_rows",
    "build_recent_average_scatter",
    "build_country_year_panel",
    "frame_positions",
    "interpolate_frame",
    "build_indicator_animation",
]

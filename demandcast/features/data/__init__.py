"""Data module for the retail inventory CSV.

Exports:
    - load_series: One numeric series from a CSV column
    - load_grouped_series: One series per group (e.g. per store)
    - preview: Headers and first rows for the dashboard
"""

from demandcast.features.data.loader import load_grouped_series, load_series, preview

__all__ = [
    "load_grouped_series",
    "load_series",
    "preview",
]

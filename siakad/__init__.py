"""SIAKAD backend: student lifecycle, rombel membership and score aggregation."""

__version__ = "1.0.0"

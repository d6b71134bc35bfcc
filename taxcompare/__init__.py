"""taxcompare: W-2 vs 1099 tax comparison engine."""

__version__ = "0.1.0"

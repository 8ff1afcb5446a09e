"""Weather Observatory Climate API: station aggregation and derived indices."""

__version__ = "1.0.0"

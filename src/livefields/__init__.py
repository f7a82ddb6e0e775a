"""livefields: keep a handful of shared fields in sync across live viewers."""

__version__ = "0.1.0"

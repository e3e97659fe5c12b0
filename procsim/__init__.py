"""procsim - process lifecycle and item-processing engine."""

__version__ = "0.1.0"

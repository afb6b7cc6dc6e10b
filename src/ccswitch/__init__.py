"""ccswitch - manage named configuration records and keep their external files in sync."""

__version__ = "0.4.0"

"""IRC command bot: table-driven command dispatcher on top of pydle."""

__version__ = "0.3.0"

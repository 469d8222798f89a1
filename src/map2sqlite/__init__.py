"""map2sqlite - import map tile directories into a SQLite tile database."""

__version__ = "1.0"

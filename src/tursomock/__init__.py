"""Local mock of the Turso database platform: management API plus libsql HTTP pipeline."""

__version__ = "1.0.0"

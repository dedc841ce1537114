"""JBApp: employers and jobs over SQLite, with a read-only HTTP facade."""

__version__ = "0.1.0"

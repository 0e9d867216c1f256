"""Three-way synchronisation of a personal spell-check word list."""

__version__ = "0.4.0"

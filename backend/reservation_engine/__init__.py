"""Area reservation scheduling and availability engine."""

__version__ = "0.1.0"

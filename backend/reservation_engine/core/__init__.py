"""Configuration, clock, errors and logging."""

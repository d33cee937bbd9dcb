"""Pure value types used across the engine."""

"""Domain services for the reservation engine."""

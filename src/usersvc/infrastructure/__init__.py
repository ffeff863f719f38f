"""Infrastructure layer: database access."""

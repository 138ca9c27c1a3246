"""Infrastructure layer: persistence and observability."""

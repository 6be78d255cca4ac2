"""Domain layer: models, services and errors."""

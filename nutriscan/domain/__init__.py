"""Domain layer: models, ports and pure business rules."""

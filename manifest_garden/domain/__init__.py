"""Domain layer: garden models and their business rules."""

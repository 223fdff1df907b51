"""Domain layer: segment algorithms, entities and errors."""

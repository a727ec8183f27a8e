"""Domain layer: enums, exceptions, services, repository contracts and events."""

"""Application layer: request DTOs and use cases."""

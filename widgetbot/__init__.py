"""Chat widget message resolution service."""

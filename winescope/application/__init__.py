"""Application layer: use cases and response models."""

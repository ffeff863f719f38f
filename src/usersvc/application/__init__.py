"""Application layer: use cases orchestrating validation and storage."""

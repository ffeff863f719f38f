"""Users service: a REST API over a single ``users`` table."""

__version__ = "1.0.0"

"""payloadgate - Schema-driven request validation and DTO construction."""

__version__ = "0.1.0"

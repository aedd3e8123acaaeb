"""OpenAPI schema resolution and type-model generation."""

__version__ = "0.1.0"

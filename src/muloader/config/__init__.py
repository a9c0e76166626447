"""Configuration layer: pydantic settings, TOML discovery, logging setup."""

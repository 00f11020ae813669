"""Configuration, logging, and provider request shaping."""

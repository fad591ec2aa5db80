"""Configuration package for the raindrop exporter."""

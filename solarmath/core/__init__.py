"""Core of solarmath: image model, geometry, metadata merge, executor and configuration."""

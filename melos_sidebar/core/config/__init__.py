"""Configuration loading for melos.yaml."""

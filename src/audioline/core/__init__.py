"""Core models, interfaces, errors and registries."""

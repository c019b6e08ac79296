"""Shared helpers: logging, validation and PCM byte handling."""

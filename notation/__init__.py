"""Artifact signing building blocks: descriptors, configuration, directories and plugins."""

__version__ = "0.1.0"

__all__ = [
    "algorithm",
    "config",
    "dirs",
    "envelope",
    "errors",
    "manager",
    "metadata",
    "protocol",
    "types",
]
"""TAUSCALE package."""

__all__ = [
    "trees",
    "intervals",
    "operators",
    "schedule",
    "config",
    "site_models",
    "parameters",
    "cli",
]

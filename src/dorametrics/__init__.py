"""DORA metrics derived from GitHub pull request activity."""

__version__ = "0.1.0"

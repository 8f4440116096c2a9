# catalog_updater/__init__.py
"""Builds a software catalog (index.json) from the repositories of GitHub App installations."""

__version__ = "1.0.0"

# src/jobboard/core/logging/utils.py
"""
Project metadata helpers used to stamp structured log records.

The name and version come from the installed distribution metadata
(`importlib.metadata`), so they match what `pip install` put on the system.
"""
from importlib import metadata as importlib_metadata

PROJECT_NAME = "jobboard"


def get_project_name(default: str = PROJECT_NAME) -> str:
    """Distribution name as installed, or `default` when running from a bare checkout."""
    try:
        return importlib_metadata.metadata(PROJECT_NAME)["Name"] or default
    except importlib_metadata.PackageNotFoundError:
        return default


def get_project_version(default: str = "unknown") -> str:
    try:
        return importlib_metadata.version(PROJECT_NAME)
    except importlib_metadata.PackageNotFoundError:
        return default


__all__ = ["PROJECT_NAME", "get_project_name", "get_project_version"]

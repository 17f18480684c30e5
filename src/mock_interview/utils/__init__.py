"""Utility modules for logging and formatting helpers."""

from .logging import setup_logging

__all__ = ["setup_logging"]

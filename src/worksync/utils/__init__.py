"""Utility functions for worksync."""

from .datetime import now_utc

__all__ = ["now_utc"]

"""Utility modules for shared functionality."""

from .retry import retry_on_transient_error

__all__ = ["retry_on_transient_error"]

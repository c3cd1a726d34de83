"""Test helper utilities for the GHDEPUP project."""

from tests.helpers.async_cm import make_async_context_manager

__all__ = ["make_async_context_manager"]

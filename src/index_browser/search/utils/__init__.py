"""Utilities for the query pipeline."""

from .query_logger import log_dispatch, log_outcome, sanitize_for_logging, set_debug_mode

__all__ = ["log_dispatch", "log_outcome", "sanitize_for_logging", "set_debug_mode"]

#!/usr/bin/env python3

"""Logging infrastructure: handler setup, timing and load statistics."""

from .logger_setup import LoggerSetup
from .progress_tracker import ProgressTracker
from .utils import SLOW_OPERATION_SECONDS, get_logger, log_timing

__all__ = [
    "SLOW_OPERATION_SECONDS",
    "LoggerSetup",
    "ProgressTracker",
    "get_logger",
    "log_timing",
]

#!/usr/bin/env python3

"""Logging helpers shared by the loader, decoder and CLI."""

import logging
from collections.abc import Callable
from functools import wraps
from time import perf_counter
from typing import Any, TypeVar, cast, overload

F = TypeVar("F", bound=Callable[..., Any])

# Operations slower than this are reported at INFO instead of DEBUG
SLOW_OPERATION_SECONDS = 1.0


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance (handlers are attached by LoggerSetup)
    """
    return logging.getLogger(name)


@overload
def log_timing(func: F) -> F: ...


@overload
def log_timing(*, slow_seconds: float = SLOW_OPERATION_SECONDS) -> Callable[[F], F]: ...


def log_timing(
    func: F | None = None, *, slow_seconds: float = SLOW_OPERATION_SECONDS
) -> F | Callable[[F], F]:
    """
    Decorator to log execution time of a function.

    Usable bare (``@log_timing``) or with a threshold
    (``@log_timing(slow_seconds=5.0)``). Completion is logged at DEBUG, or at
    INFO when it took longer than ``slow_seconds``; failures are logged at
    ERROR and re-raised.

    Args:
        func: Function to decorate
        slow_seconds: Duration above which completion is logged at INFO

    Returns:
        Wrapped function that logs timing
    """

    def decorate(target: F) -> F:
        logger = get_logger(target.__module__)
        name = target.__qualname__

        @wraps(target)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger.debug(f"Starting {name}")
            start = perf_counter()

            try:
                result = target(*args, **kwargs)
            except Exception as e:
                logger.error(
                    f"Failed {name} after {perf_counter() - start:.3f}s: "
                    f"{type(e).__name__}: {e}"
                )
                raise

            elapsed = perf_counter() - start
            level = logging.INFO if elapsed > slow_seconds else logging.DEBUG
            logger.log(level, f"Completed {name} in {elapsed:.3f}s")
            return result

        return cast("F", wrapper)

    if func is not None:
        return decorate(func)
    return decorate

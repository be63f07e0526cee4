#!/usr/bin/env python3

"""Progress tracking for schema loading."""

import logging
from collections import Counter
from collections.abc import Iterator
from contextlib import contextmanager
from time import time


class ProgressTracker:
    """
    Track and report schema loading progress with statistics.

    Counts aggregates, members and invalidated descriptors (grouped by
    reason) so one summary line describes how well a document loaded.
    """

    def __init__(self, logger: logging.Logger):
        """
        Initialize progress tracker.

        Args:
            logger: Logger instance for progress reporting
        """
        self.logger = logger
        self.start_time = time()
        self.aggregate_count = 0
        self.member_count = 0
        self.function_count = 0
        self.invalid_reasons: Counter[str] = Counter()
        self.operation_stack: list[tuple[str, float]] = []

    @contextmanager
    def track_operation(self, operation_name: str) -> Iterator[None]:
        """
        Track a high-level operation with timing.

        Args:
            operation_name: Name of the operation being tracked

        Yields:
            None
        """
        start_time = time()
        self.operation_stack.append((operation_name, start_time))

        self.logger.debug(f"Starting operation: {operation_name}")

        try:
            yield
            elapsed = time() - start_time
            self.logger.debug(f"Completed operation: {operation_name} in {elapsed:.3f}s")
        except Exception as e:
            elapsed = time() - start_time
            self.logger.error(f"Failed operation: {operation_name} after {elapsed:.3f}s: {e}")
            raise
        finally:
            self.operation_stack.pop()

    def count_aggregate(self, member_count: int) -> None:
        """Record one finished aggregate and its members."""
        self.aggregate_count += 1
        self.member_count += member_count

    def count_function(self) -> None:
        """Record one function entry point."""
        self.function_count += 1

    def count_invalid(self, reason: str) -> None:
        """Record one invalidated descriptor."""
        self.invalid_reasons[reason] += 1

    @property
    def invalid_count(self) -> int:
        return sum(self.invalid_reasons.values())

    def report_summary(self) -> None:
        """Report final loading statistics."""
        total_time = time() - self.start_time

        self.logger.info(
            f"Loaded {self.aggregate_count} aggregates ({self.member_count} members, "
            f"{self.invalid_count} invalid) and {self.function_count} functions "
            f"in {total_time:.2f}s"
        )
        for reason, count in self.invalid_reasons.most_common(5):
            self.logger.debug(f"  {count}x invalid: {reason}")

    def get_current_context(self) -> str:
        """
        Get current operation context for logging.

        Returns:
            String describing current operation stack
        """
        if not self.operation_stack:
            return "idle"

        return " → ".join(op[0] for op in self.operation_stack)

    def reset(self) -> None:
        """Reset all counters and timers."""
        self.start_time = time()
        self.aggregate_count = 0
        self.member_count = 0
        self.function_count = 0
        self.invalid_reasons.clear()
        self.operation_stack.clear()

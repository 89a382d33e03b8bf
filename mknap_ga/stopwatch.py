"""
Named wall-clock timers.
"""

import time


class Stopwatch:
    """Keeps any number of named timers; stop() returns elapsed milliseconds."""

    def __init__(self):
        self.watches: dict[str, float] = {}

    def start(self, name: str) -> None:
        self.watches[name] = time.perf_counter()

    def elapsed(self, name: str) -> float:
        """Milliseconds since start(name), without stopping the timer."""
        if name not in self.watches:
            raise KeyError(f"Stopwatch '{name}' was not started")
        return (time.perf_counter() - self.watches[name]) * 1000.0

    def stop(self, name: str) -> float:
        """
        Stop a timer.

        Args:
            name: Timer name passed to start()

        Returns:
            Elapsed time in milliseconds

        Raises:
            KeyError: If the timer was never started
        """
        elapsed = self.elapsed(name)
        del self.watches[name]
        return elapsed

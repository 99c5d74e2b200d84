"""Per-store circuit breaker.

Three states: closed, open, half-open.

- closed: calls flow normally, consecutive failures are counted
- open: calls are skipped until recovery_timeout has elapsed
- half-open: one probe call is allowed; success -> closed, failure -> open
"""

import time


class CircuitBreaker:
    def __init__(self, failure_threshold: int = 5, recovery_timeout: float = 300.0):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.last_failure_time = 0.0
        self.state = "closed"

    def allow(self) -> bool:
        """Return True if a call may go through right now."""
        if self.state == "open":
            if time.monotonic() - self.last_failure_time > self.recovery_timeout:
                self.state = "half-open"
                return True
            return False
        return True

    def record_success(self) -> None:
        self.failure_count = 0
        self.state = "closed"

    def record_failure(self) -> bool:
        """Count a failure. Returns True when this failure tripped the breaker."""
        self.failure_count += 1
        self.last_failure_time = time.monotonic()
        if self.state == "half-open" or (
            self.state == "closed" and self.failure_count >= self.failure_threshold
        ):
            self.state = "open"
            return True
        return False

from rest_framework.throttling import SimpleRateThrottle


class BookingRateThrottle(SimpleRateThrottle):
    """
    Per-client limit on booking attempts (``DEFAULT_THROTTLE_RATES["booking"]``).

    Sits in front of the booking view only; it is an abuse guard, the booking
    transaction does not depend on it. Backed by the default Django cache,
    keyed by the client IP (``X-Forwarded-For`` aware via DRF).
    """

    scope = "booking"

    def get_cache_key(self, request, view):
        return self.cache_format % {
            "scope": self.scope,
            "ident": self.get_ident(request),
        }

    def allow(self, key) -> bool:
        """Record a hit for ``key`` and report whether it is within the rate."""
        self.key = self.cache_format % {"scope": self.scope, "ident": key}
        self.history = self.cache.get(self.key, [])
        self.now = self.timer()
        while self.history and self.history[-1] <= self.now - self.duration:
            self.history.pop()
        if len(self.history) >= self.num_requests:
            return False
        return self.throttle_success()

"""Rate limiting for the webhook and admin endpoints.

DRF's ``ScopedRateThrottle`` only understands single-unit periods
(``100/min``). ``WindowedScopedRateThrottle`` also accepts a multiplier in
front of the unit, so ``100/15m`` means 100 requests per 15 minutes.
"""

import re

from rest_framework.throttling import ScopedRateThrottle

RATE_RE = re.compile(r"^(?P<count>\d*)(?P<unit>[smhd])[a-z]*$")
UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_window(period: str) -> int:
    """Return the window length in seconds for ``15m``, ``min``, ``2h``...

    Raises:
        ValueError: If the period is not understood.
    """
    m = RATE_RE.match(period.strip().lower())
    if not m:
        raise ValueError(f"Invalid throttle period {period!r}")
    return int(m.group("count") or 1) * UNIT_SECONDS[m.group("unit")]


class WindowedScopedRateThrottle(ScopedRateThrottle):
    def parse_rate(self, rate):
        if rate is None:
            return (None, None)
        num, period = rate.split("/")
        return (int(num), parse_window(period))

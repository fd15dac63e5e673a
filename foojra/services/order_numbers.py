"""
Order number generation.

Format: ORD + last 6 digits of the epoch-millisecond clock + 3-digit suffix,
e.g. ORD482913047. Within one process the (millisecond, suffix) pair only
ever increases: the first number issued in a millisecond gets a random
suffix, later ones in the same millisecond take the next suffix, and a
suffix overflow borrows the following millisecond. Collisions across
processes are left to the unique index on orders.order_number, which the
order service retries on.
"""
import random
import threading
import time

from foojra.core.config import get_settings

settings = get_settings()

SUFFIX_SPACE = 1000


class OrderNumberGenerator:
    def __init__(self, prefix: str | None = None, clock=None, rng: random.Random | None = None):
        self.prefix = prefix or settings.ORDER_NUMBER_PREFIX
        self._clock = clock or (lambda: int(time.time() * 1000))
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._last_millis = -1
        self._last_suffix = -1

    def next(self) -> str:
        with self._lock:
            millis = self._clock()
            if millis > self._last_millis:
                suffix = self._rng.randrange(SUFFIX_SPACE)
            else:
                millis = self._last_millis
                suffix = self._last_suffix + 1
                if suffix >= SUFFIX_SPACE:
                    millis += 1
                    suffix = 0
            self._last_millis, self._last_suffix = millis, suffix
        return f"{self.prefix}{str(millis)[-6:]}{suffix:03d}"


_generator = OrderNumberGenerator()


def generate_order_number() -> str:
    return _generator.next()

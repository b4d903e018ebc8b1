import random
import threading
from typing import Optional, Protocol

from gacha_engine.settings import get_settings


class RandomSource(Protocol):
    """Anything that draws like ``random.Random``. Inject one for deterministic rolls."""

    def randrange(self, stop: int) -> int: ...


_shared_rng: Optional[random.Random] = None
_shared_lock = threading.Lock()


def get_rng(seed: Optional[int] = None) -> RandomSource:
    """
    Fresh generator for an explicit seed, otherwise the shared process-wide one.
    Same seed always produces the same draw order.
    """
    global _shared_rng

    if seed is not None:
        return random.Random(seed)

    if _shared_rng is None:
        with _shared_lock:
            if _shared_rng is None:
                _shared_rng = random.Random(get_settings().seed)
    return _shared_rng

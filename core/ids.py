# core/ids.py
"""
Time-sortable unique ids used to mint allocation targets and app ids.

Format: 26 lower-case Crockford base32 characters. The first 10 encode the
millisecond timestamp, the last 16 are random (80 bits). Ids minted within
the same millisecond by one generator increment the random part, so a
generator never goes backwards.
"""
import secrets
import threading
import time
from typing import Callable, Final

_ENCODING: Final[str] = "0123456789abcdefghjkmnpqrstvwxyz"
_RANDOM_BITS: Final[int] = 80
_RANDOM_MAX: Final[int] = (1 << _RANDOM_BITS) - 1


def _encode_base32(value: int, length: int) -> str:
    result = []
    for _ in range(length):
        result.append(_ENCODING[value & 31])
        value >>= 5
    return "".join(reversed(result))


class IdGenerator:
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ms = -1
        self._last_rand = 0

    def new_id(self) -> str:
        with self._lock:
            ms = int(self._clock() * 1000)
            if ms <= self._last_ms:
                ms = self._last_ms
                rand = self._last_rand + 1
                if rand > _RANDOM_MAX:
                    # random part exhausted within one millisecond: borrow the next one
                    ms += 1
                    rand = secrets.randbits(_RANDOM_BITS - 1)
            else:
                rand = secrets.randbits(_RANDOM_BITS - 1)
            self._last_ms, self._last_rand = ms, rand
        return _encode_base32(ms, 10) + _encode_base32(rand, 16)


_default = IdGenerator()


def new_id() -> str:
    return _default.new_id()

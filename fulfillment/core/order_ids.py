# Role: Order id source. "secure" draws from the OS CSPRNG; "counter" combines a process-wide
# monotonic counter with the session id. Both are unique per order within one process.

from __future__ import annotations

import itertools
import secrets
import threading
from typing import Iterator, Optional

from fulfillment.config import OrderIdStrategy

# Shared by every generator that is not handed its own counter.
_PROCESS_COUNTER = itertools.count(1)
_PROCESS_LOCK = threading.Lock()


class OrderIdGenerator:
    def __init__(
        self,
        strategy: OrderIdStrategy = "secure",
        token_bytes: int = 8,
        counter: Optional[Iterator[int]] = None,
    ) -> None:
        if strategy not in ("secure", "counter"):
            raise ValueError(f"Unknown order id strategy: {strategy!r}")
        self.strategy = strategy
        self._token_bytes = token_bytes
        # Key line: an injected counter is private to this generator (deterministic ids in tests).
        self._counter = counter if counter is not None else _PROCESS_COUNTER
        self._lock = threading.Lock() if counter is not None else _PROCESS_LOCK

    def new_id(self, session_id: str = "") -> str:
        if self.strategy == "secure":
            return secrets.token_hex(self._token_bytes)

        with self._lock:
            n = next(self._counter)
        prefix = session_id.rsplit("/", 1)[-1] if session_id else "order"
        return f"{prefix}-{n:06d}"

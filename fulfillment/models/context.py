# Role: Named, turn-scoped conversation flags. A Context carries a remaining-turns lifespan;
# ContextSet is an immutable collection where any lifespan <= 0 is treated as absent.

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

MERCHANT_PAY = "merchant_pay"
GOOGLE_PAY = "google_pay"


class Context(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    lifespan: int
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @property
    def active(self) -> bool:
        return self.lifespan > 0


class ContextSet:
    def __init__(self, contexts: Optional[List[Context]] = None) -> None:
        # Key line: expired contexts never enter the set, so lookups need no lifespan checks.
        self._contexts: Dict[str, Context] = {c.name: c for c in (contexts or []) if c.active}

    def get(self, name: str) -> Optional[Context]:
        return self._contexts.get(name)

    def is_active(self, name: str) -> bool:
        return name in self._contexts

    def names(self) -> List[str]:
        return sorted(self._contexts)

    def __iter__(self) -> Iterator[Context]:
        return iter(self._contexts.values())

    def __len__(self) -> int:
        return len(self._contexts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ContextSet):
            return NotImplemented
        return self._contexts == other._contexts

    def __repr__(self) -> str:
        inner = ", ".join(f"{c.name}={c.lifespan}" for c in self)
        return f"ContextSet({inner})"

    def with_updates(self, updates: Mapping[str, int]) -> "ContextSet":
        # Set (or clear, with lifespan 0) contexts by name; returns a new set.
        merged = dict(self._contexts)
        for name, lifespan in updates.items():
            if lifespan > 0:
                previous = merged.get(name)
                params = previous.parameters if previous else {}
                merged[name] = Context(name=name, lifespan=lifespan, parameters=params)
            else:
                merged.pop(name, None)
        return ContextSet(list(merged.values()))

    def decremented(self) -> "ContextSet":
        """One conversational turn has passed: every lifespan drops by exactly one."""
        return ContextSet(
            [Context(name=c.name, lifespan=c.lifespan - 1, parameters=c.parameters) for c in self]
        )

    def to_dict(self) -> Dict[str, int]:
        return {c.name: c.lifespan for c in self}

"""
Per-function slot table.

Two structures are kept side by side:
  - an append-only list of every slot ever created in the function, and
  - the current-binding map from source name to its most recent slot.

A `let` (or a parameter) always creates a new slot; rebinding a name only
moves the current-binding entry, so earlier slots and any instruction that
already refers to them stay valid.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .ast import Located
from .diagnostics import Span, UndefinedIdentifier
from .types import Type
from .wir import Slot, SlotInfo


class SlotTable:
    def __init__(self, file: Optional[str] = None) -> None:
        self._file = file
        self._slots: List[SlotInfo] = []
        self._bindings: Dict[str, Slot] = {}

    def bind_param(self, name: str, type: Type, loc: Optional[Located] = None) -> Slot:
        return self._bind(name, type, "param", loc)

    def bind_let(self, name: str, type: Type, loc: Optional[Located] = None) -> Slot:
        return self._bind(name, type, "let", loc)

    def _bind(self, name: str, type: Type, origin: str, loc: Optional[Located]) -> Slot:
        slot = Slot(len(self._slots))
        self._slots.append(SlotInfo(slot=slot, name=name, type=type, origin=origin, loc=loc))
        self._bindings[name] = slot
        return slot

    def resolve(self, name: str, loc: Optional[Located] = None) -> Slot:
        try:
            return self._bindings[name]
        except KeyError:
            raise UndefinedIdentifier(name, Span.from_loc(loc, file=self._file)) from None

    def info(self, slot: Slot) -> SlotInfo:
        return self._slots[slot.index]

    @property
    def slots(self) -> Tuple[SlotInfo, ...]:
        return tuple(self._slots)

    @property
    def bindings(self) -> Dict[str, Slot]:
        return dict(self._bindings)

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

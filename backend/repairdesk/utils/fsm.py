"""Simple finite state machine utility for enforcing allowed status transitions.

Usage:
    from repairdesk.utils.fsm import TransitionValidator
    FSM = TransitionValidator({
        'RECEIVED': {'DIAGNOSED', 'CANCELLED'},
        'DIAGNOSED': {'COMPLETED', 'CANCELLED'},
        'COMPLETED': set(),
        'CANCELLED': set(),
    }, terminal={'COMPLETED', 'CANCELLED'})
    FSM.assert_can_transition(current_status, target_status)

Raises InvalidStateError (409) if the move is not in the graph.
"""
from __future__ import annotations
from typing import Dict, Iterable, Set

from repairdesk.errors import InvalidStateError


class TransitionValidator:
    def __init__(self, graph: Dict[str, Set[str]], field_name: str = 'status', terminal: Iterable[str] = ()):
        self.graph = graph
        self.field_name = field_name
        self.terminal = frozenset(terminal)

    def allowed_targets(self, current: str) -> Set[str]:
        if current in self.terminal:
            return set()
        return set(self.graph.get(current, set()))

    def can_transition(self, current: str, target: str) -> bool:
        return target in self.allowed_targets(current)

    def assert_can_transition(self, current: str, target: str):
        if current in self.terminal:
            raise InvalidStateError(f"{self.field_name} {current} is terminal", field=self.field_name)
        if not self.can_transition(current, target):
            raise InvalidStateError(f"Invalid {self.field_name} transition {current} -> {target}", field=self.field_name)
        return True


__all__ = ['TransitionValidator']

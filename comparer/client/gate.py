"""
Profile Comparer - Action Gate

Decides which roast actions may be triggered.

- While a generation is in flight every action is disabled.
- After a generation started by action X completes, exactly X is disabled
  (the previous disabled set is replaced, not extended).
- A neutral comparison or a failed generation leaves everything enabled.
"""

from typing import FrozenSet, Iterable, List, Optional


class ActionGate:
    def __init__(self, actions: Iterable[str]):
        self.actions: List[str] = list(actions)
        self.disabled: FrozenSet[str] = frozenset()
        self.busy = False
        self.current: Optional[str] = None

    def is_enabled(self, action: str) -> bool:
        return not self.busy and action in self.actions and action not in self.disabled

    def enabled_actions(self) -> List[str]:
        return [action for action in self.actions if self.is_enabled(action)]

    def begin(self, action: Optional[str] = None) -> bool:
        """
        Claim the gate for a generation.

        ``action`` is None for the neutral comparison. Returns False, and
        changes nothing, while busy or when the action is disabled.
        """
        if self.busy:
            return False
        if action is not None and not self.is_enabled(action):
            return False
        self.busy = True
        self.current = action
        return True

    def complete(self, failed: bool = False) -> None:
        """Release the gate once the generation is idle."""
        if not self.busy:
            return
        if failed or self.current is None:
            self.disabled = frozenset()
        else:
            self.disabled = frozenset({self.current})
        self.busy = False
        self.current = None

    def reset(self) -> None:
        self.disabled = frozenset()
        self.busy = False
        self.current = None

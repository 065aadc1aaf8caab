"""
Undo log for multi-step operations.
"""

from typing import Callable, List, Optional, Tuple


class Transaction:
    """
    Record an undo action for every completed step and replay them, newest
    first, when the block fails. A disabled transaction records nothing, so
    completed steps stay applied.

    Usage:
        with Transaction(enabled=rollback) as tx:
            create_groups(..., transaction=tx)
            grant_permissions(..., transaction=tx)
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._undo: List[Tuple[str, Callable[[], object]]] = []

    def __len__(self):
        return len(self._undo)

    def record(self, description: str, undo: Callable[[], object]) -> None:
        if self.enabled:
            self._undo.append((description, undo))

    def rollback(self) -> List[str]:
        """
        Run the recorded undo actions, newest first.

        Returns:
            Descriptions of the undo actions that failed
        """
        failed = []
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
                print(f"↩️  Rolled back: {description}")
            except Exception as e:
                # keep undoing; the original error is re-raised by __exit__
                print(f"❌ Rollback failed for {description}: {e}")
                failed.append(description)
        return failed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None and self._undo:
            print(f"⚠️  {exc_type.__name__}: {exc} - rolling back {len(self._undo)} step(s)")
            self.rollback()
        return False


def record(transaction: Optional[Transaction], description: str, undo: Callable[[], object]) -> None:
    """Record an undo action if a transaction is active."""
    if transaction is not None:
        transaction.record(description, undo)

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from klondike import GameState


class History:
    """Single-level undo.

    Holds at most one state, the one from just before the last accepted
    move. Game states are immutable, so keeping the reference is enough
    to keep the snapshot intact.
    """

    def __init__(self) -> None:
        self._snapshot: "GameState | None" = None

    def save_snapshot(self, state: "GameState") -> None:
        self._snapshot = state

    def undo(self) -> "GameState | None":
        snapshot = self._snapshot
        self._snapshot = None
        return snapshot

    def clear(self) -> None:
        self._snapshot = None

    @property
    def has_undo(self) -> bool:
        return self._snapshot is not None

    def __len__(self) -> int:
        return 0 if self._snapshot is None else 1

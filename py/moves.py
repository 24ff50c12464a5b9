from dataclasses import dataclass
from typing import override

from cards import Suit

TABLEAU_COUNT = 7


def _check_pile(pile: int, name: str) -> None:
    if not isinstance(pile, int) or isinstance(pile, bool) or not 0 <= pile < TABLEAU_COUNT:
        msg = f"{name} must be a tableau index in 0..{TABLEAU_COUNT - 1}, got {pile!r}"
        raise ValueError(msg)


def _check_card_index(card_index: int, name: str) -> None:
    if not isinstance(card_index, int) or isinstance(card_index, bool) or card_index < 0:
        msg = f"{name} must be a non-negative integer, got {card_index!r}"
        raise ValueError(msg)


def _check_suit(suit: Suit) -> None:
    if not isinstance(suit, Suit):
        msg = f"Unknown suit {suit!r}"
        raise ValueError(msg)


@dataclass(frozen=True)
class Draw:
    """Stock to waste, or recycle the waste when the stock is empty."""

    @override
    def __str__(self) -> str:
        return "STOCK -> WASTE"


@dataclass(frozen=True)
class TableauToTableau:
    source_pile: int
    source_card_index: int
    target_pile: int

    def __post_init__(self) -> None:
        _check_pile(self.source_pile, "source_pile")
        _check_card_index(self.source_card_index, "source_card_index")
        _check_pile(self.target_pile, "target_pile")

    @override
    def __str__(self) -> str:
        return f"TABLEAU {self.source_pile} ({self.source_card_index}) -> TABLEAU {self.target_pile}"


@dataclass(frozen=True)
class WasteToTableau:
    target_pile: int

    def __post_init__(self) -> None:
        _check_pile(self.target_pile, "target_pile")

    @override
    def __str__(self) -> str:
        return f"WASTE -> TABLEAU {self.target_pile}"


@dataclass(frozen=True)
class WasteSource:
    @override
    def __str__(self) -> str:
        return "WASTE"


@dataclass(frozen=True)
class TableauSource:
    pile: int
    card_index: int

    def __post_init__(self) -> None:
        _check_pile(self.pile, "pile")
        _check_card_index(self.card_index, "card_index")

    @override
    def __str__(self) -> str:
        return f"TABLEAU {self.pile} ({self.card_index})"


type FoundationSource = WasteSource | TableauSource


@dataclass(frozen=True)
class ToFoundation:
    source: FoundationSource
    suit: Suit

    def __post_init__(self) -> None:
        if not isinstance(self.source, (WasteSource, TableauSource)):
            msg = f"Foundation moves come from the waste or a tableau pile, got {self.source!r}"
            raise ValueError(msg)
        _check_suit(self.suit)

    @override
    def __str__(self) -> str:
        return f"{self.source} -> FOUNDATION {self.suit.value}"


@dataclass(frozen=True)
class FoundationToTableau:
    suit: Suit
    target_pile: int

    def __post_init__(self) -> None:
        _check_suit(self.suit)
        _check_pile(self.target_pile, "target_pile")

    @override
    def __str__(self) -> str:
        return f"FOUNDATION {self.suit.value} -> TABLEAU {self.target_pile}"


@dataclass(frozen=True)
class Undo:
    @override
    def __str__(self) -> str:
        return "UNDO"


type Move = Draw | TableauToTableau | WasteToTableau | ToFoundation | FoundationToTableau | Undo


# Selections belong to the presentation layer: they point at what the
# player picked up and are turned into a Move once it is dropped.


@dataclass(frozen=True)
class TableauSelection:
    pile: int
    card_index: int

    def __post_init__(self) -> None:
        _check_pile(self.pile, "pile")
        _check_card_index(self.card_index, "card_index")


@dataclass(frozen=True)
class WasteSelection:
    pass


@dataclass(frozen=True)
class FoundationSelection:
    suit: Suit

    def __post_init__(self) -> None:
        _check_suit(self.suit)


type Selection = TableauSelection | WasteSelection | FoundationSelection


def drop_on_tableau(selection: Selection, target_pile: int) -> Move:
    if isinstance(selection, TableauSelection):
        return TableauToTableau(selection.pile, selection.card_index, target_pile)
    elif isinstance(selection, WasteSelection):
        return WasteToTableau(target_pile)
    elif isinstance(selection, FoundationSelection):
        return FoundationToTableau(selection.suit, target_pile)
    else:
        msg = f"Invalid selection: {selection!r}"
        raise ValueError(msg)


def drop_on_foundation(selection: Selection, suit: Suit) -> Move | None:
    """Foundation drops only come from the waste or a tableau card.

    Dropping a foundation card onto a foundation names no move, so the
    caller just clears its selection.
    """
    if isinstance(selection, TableauSelection):
        return ToFoundation(TableauSource(selection.pile, selection.card_index), suit)
    elif isinstance(selection, WasteSelection):
        return ToFoundation(WasteSource(), suit)
    elif isinstance(selection, FoundationSelection):
        return None
    else:
        msg = f"Invalid selection: {selection!r}"
        raise ValueError(msg)

import dataclasses

import pytest
from cards import Suit
from moves import (
    FoundationSelection,
    FoundationToTableau,
    TableauSelection,
    TableauSource,
    TableauToTableau,
    ToFoundation,
    WasteSelection,
    WasteSource,
    WasteToTableau,
    drop_on_foundation,
    drop_on_tableau,
)


@pytest.mark.parametrize(
    "build",
    [
        lambda: TableauToTableau(7, 0, 1),
        lambda: TableauToTableau(0, -1, 1),
        lambda: TableauToTableau(0, 0, -1),
        lambda: WasteToTableau(True),
        lambda: TableauSource(0, "1"),
        lambda: ToFoundation(TableauSource(0, 0), "hearts"),
        lambda: ToFoundation(None, Suit.HEARTS),
        lambda: FoundationToTableau(Suit.CLUBS, 9),
        lambda: TableauSelection(-2, 0),
    ],
)
def test_malformed_moves_are_refused(build):
    with pytest.raises(ValueError):
        build()


def test_moves_are_frozen():
    move = TableauToTableau(0, 0, 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        move.target_pile = 2  # type: ignore[misc]


def test_move_descriptions():
    assert str(TableauToTableau(0, 2, 5)) == "TABLEAU 0 (2) -> TABLEAU 5"
    assert str(ToFoundation(WasteSource(), Suit.SPADES)) == "WASTE -> FOUNDATION spades"


def test_drop_on_tableau():
    assert drop_on_tableau(TableauSelection(2, 1), 4) == TableauToTableau(2, 1, 4)
    assert drop_on_tableau(WasteSelection(), 4) == WasteToTableau(4)
    assert drop_on_tableau(FoundationSelection(Suit.HEARTS), 4) == FoundationToTableau(Suit.HEARTS, 4)


def test_drop_on_foundation():
    assert drop_on_foundation(TableauSelection(2, 1), Suit.CLUBS) == ToFoundation(TableauSource(2, 1), Suit.CLUBS)
    assert drop_on_foundation(WasteSelection(), Suit.CLUBS) == ToFoundation(WasteSource(), Suit.CLUBS)
    assert drop_on_foundation(FoundationSelection(Suit.HEARTS), Suit.CLUBS) is None


def test_drop_rejects_unknown_selection():
    with pytest.raises(ValueError):
        drop_on_tableau("waste", 0)  # type: ignore[arg-type]

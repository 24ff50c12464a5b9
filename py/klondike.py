import logging
import random
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, override

from cards import Card, Rank, Suit, canonical_deck, generate_deck
from history import History
from moves import (
    TABLEAU_COUNT,
    Draw,
    FoundationToTableau,
    Move,
    TableauSource,
    TableauToTableau,
    ToFoundation,
    Undo,
    WasteSource,
    WasteToTableau,
)

logger = logging.getLogger(__name__)

DECK_SIZE = 52
FOUNDATION_SIZE = len(Rank)

type Pile = tuple[Card, ...]


def _top(pile: Sequence[Card]) -> Card | None:
    if len(pile) == 0:
        return None
    return pile[-1]


@dataclass(frozen=True)
class GameState:
    """One immutable position of a Klondike game.

    Piles are stored bottom-to-top, so the last card of each tuple is the
    playable one. ``foundations`` is indexed by ``int(suit)``.
    """

    tableau: tuple[Pile, ...]
    stock: Pile = ()
    waste: Pile = ()
    foundations: tuple[Pile, ...] = field(default_factory=lambda: tuple(() for _ in Suit))

    def __post_init__(self) -> None:
        if len(self.tableau) != TABLEAU_COUNT:
            msg = f"Expected {TABLEAU_COUNT} tableau piles, got {len(self.tableau)}"
            raise ValueError(msg)
        if len(self.foundations) != len(Suit):
            msg = f"Expected {len(Suit)} foundations, got {len(self.foundations)}"
            raise ValueError(msg)

    def foundation(self, suit: Suit) -> Pile:
        return self.foundations[int(suit)]

    def foundation_map(self) -> dict[Suit, Pile]:
        return {suit: self.foundation(suit) for suit in Suit}

    def all_cards(self) -> list[Card]:
        cards: list[Card] = []
        for pile in self.tableau:
            cards.extend(pile)
        cards.extend(self.stock)
        cards.extend(self.waste)
        for foundation in self.foundations:
            cards.extend(foundation)
        return cards

    def check_integrity(self) -> None:
        """Raise ValueError unless the position holds exactly one full deck
        and every foundation is an ascending single-suit run from the Ace.
        """
        counts = Counter(self.all_cards())
        duplicates = [card for card, count in counts.items() if count > 1]
        if duplicates:
            msg = f"Duplicate cards: {duplicates}"
            raise ValueError(msg)
        missing = [card for card in canonical_deck() if card not in counts]
        if missing:
            msg = f"Missing cards: {missing}"
            raise ValueError(msg)
        for suit in Suit:
            for idx, card in enumerate(self.foundation(suit)):
                if card.suit != suit or card.rank.ordinal != idx:
                    msg = f"Foundation {suit.value} is out of order at {idx}: {card!r}"
                    raise ValueError(msg)


def deal(deck: Sequence[Card]) -> GameState:
    """Lay out a Klondike game from ``deck``.

    Pile ``i`` takes the next ``i + 1`` cards from the front of the deck
    with only its last card face-up. The 24 cards left over become the
    face-down stock.
    """
    if len(deck) != DECK_SIZE or set(deck) != set(canonical_deck()):
        msg = "A deal needs exactly one standard 52-card deck"
        raise ValueError(msg)

    tableau: list[Pile] = []
    position = 0
    for idx in range(TABLEAU_COUNT):
        cards = deck[position : position + idx + 1]
        position += idx + 1
        tableau.append(tuple(card.flipped(face_up=k == idx) for k, card in enumerate(cards)))
    stock = tuple(card.flipped(face_up=False) for card in deck[position:])

    assert position == 28 and len(stock) == 24  # noqa: S101, PLR2004
    return GameState(tableau=tuple(tableau), stock=stock)


def new_game(rng: random.Random | None = None) -> GameState:
    return deal(generate_deck(rng))


# Rules


def is_next_foundation_card(card: Card, foundation: Sequence[Card]) -> bool:
    """True when ``card`` is the next rank for ``foundation``. The caller
    checks that the suits match.
    """
    return card.rank.ordinal == len(foundation)


def can_place_on_tableau(card: Card, target_top: Card | None) -> bool:
    if target_top is None:
        return card.rank == Rank.KING
    return target_top.color != card.color and card.rank.ordinal == target_top.rank.ordinal - 1


def is_won(foundations: Iterable[Sequence[Card]]) -> bool:
    return all(len(foundation) == FOUNDATION_SIZE for foundation in foundations)


class Rejection(str, Enum):
    ILLEGAL_RANK = "ILLEGAL_RANK"  # rank or color sequence broken
    WRONG_SUIT = "WRONG_SUIT"
    NOT_TOP_OF_PILE = "NOT_TOP_OF_PILE"
    SAME_PILE_NOOP = "SAME_PILE_NOOP"
    EMPTY_SOURCE = "EMPTY_SOURCE"
    FACE_DOWN_CARD = "FACE_DOWN_CARD"
    NO_SUCH_CARD = "NO_SUCH_CARD"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"


@dataclass(frozen=True)
class MoveResult:
    state: GameState
    rejection: Rejection | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


# Executor. Every handler validates the whole move before building the
# next state, and returns the state it was given when it rejects.


def _reject(state: GameState, rejection: Rejection) -> MoveResult:
    return MoveResult(state, rejection)


def _reveal(pile: Pile) -> Pile:
    top = _top(pile)
    if top is None or top.face_up:
        return pile
    return (*pile[:-1], top.flipped(face_up=True))


def _with_tableau(tableau: tuple[Pile, ...], piles: dict[int, Pile]) -> tuple[Pile, ...]:
    new_tableau = list(tableau)
    for idx, pile in piles.items():
        new_tableau[idx] = pile
    return tuple(new_tableau)


def _with_foundation(foundations: tuple[Pile, ...], suit: Suit, pile: Pile) -> tuple[Pile, ...]:
    new_foundations = list(foundations)
    new_foundations[int(suit)] = pile
    return tuple(new_foundations)


def _draw(state: GameState) -> MoveResult:
    card = _top(state.stock)
    if card is not None:
        return MoveResult(
            replace(
                state,
                stock=state.stock[:-1],
                waste=(*state.waste, card.flipped(face_up=True)),
            ),
        )
    if len(state.waste) == 0:
        return _reject(state, Rejection.EMPTY_SOURCE)
    # recycle
    stock = tuple(card.flipped(face_up=False) for card in reversed(state.waste))
    return MoveResult(replace(state, stock=stock, waste=()))


def _move_tableau_to_tableau(state: GameState, move: TableauToTableau) -> MoveResult:
    if move.source_pile == move.target_pile:
        return _reject(state, Rejection.SAME_PILE_NOOP)

    source = state.tableau[move.source_pile]
    target = state.tableau[move.target_pile]
    if len(source) == 0:
        return _reject(state, Rejection.EMPTY_SOURCE)
    if move.source_card_index >= len(source):
        return _reject(state, Rejection.NO_SUCH_CARD)

    moving = source[move.source_card_index :]
    if not moving[0].face_up:
        return _reject(state, Rejection.FACE_DOWN_CARD)
    if not can_place_on_tableau(moving[0], _top(target)):
        return _reject(state, Rejection.ILLEGAL_RANK)

    tableau = _with_tableau(
        state.tableau,
        {
            move.source_pile: _reveal(source[: move.source_card_index]),
            move.target_pile: target + moving,
        },
    )
    return MoveResult(replace(state, tableau=tableau))


def _move_waste_to_tableau(state: GameState, move: WasteToTableau) -> MoveResult:
    card = _top(state.waste)
    if card is None:
        return _reject(state, Rejection.EMPTY_SOURCE)
    target = state.tableau[move.target_pile]
    if not can_place_on_tableau(card, _top(target)):
        return _reject(state, Rejection.ILLEGAL_RANK)

    tableau = _with_tableau(state.tableau, {move.target_pile: (*target, card)})
    return MoveResult(replace(state, tableau=tableau, waste=state.waste[:-1]))


def _move_to_foundation(state: GameState, move: ToFoundation) -> MoveResult:
    source = move.source
    if isinstance(source, WasteSource):
        card = _top(state.waste)
        if card is None:
            return _reject(state, Rejection.EMPTY_SOURCE)
    elif isinstance(source, TableauSource):
        pile = state.tableau[source.pile]
        if len(pile) == 0:
            return _reject(state, Rejection.EMPTY_SOURCE)
        if source.card_index >= len(pile):
            return _reject(state, Rejection.NO_SUCH_CARD)
        if source.card_index != len(pile) - 1:
            return _reject(state, Rejection.NOT_TOP_OF_PILE)
        card = pile[-1]
        if not card.face_up:
            return _reject(state, Rejection.FACE_DOWN_CARD)
    else:
        msg = f"Invalid foundation source: {source!r}"
        raise ValueError(msg)

    if card.suit != move.suit:
        return _reject(state, Rejection.WRONG_SUIT)
    foundation = state.foundation(move.suit)
    if not is_next_foundation_card(card, foundation):
        return _reject(state, Rejection.ILLEGAL_RANK)

    foundations = _with_foundation(state.foundations, move.suit, (*foundation, card.flipped(face_up=True)))
    if isinstance(source, WasteSource):
        return MoveResult(replace(state, waste=state.waste[:-1], foundations=foundations))

    pile = state.tableau[source.pile]
    tableau = _with_tableau(state.tableau, {source.pile: _reveal(pile[:-1])})
    return MoveResult(replace(state, tableau=tableau, foundations=foundations))


def _move_foundation_to_tableau(state: GameState, move: FoundationToTableau) -> MoveResult:
    foundation = state.foundation(move.suit)
    card = _top(foundation)
    if card is None:
        return _reject(state, Rejection.EMPTY_SOURCE)
    target = state.tableau[move.target_pile]
    if not can_place_on_tableau(card, _top(target)):
        return _reject(state, Rejection.ILLEGAL_RANK)

    tableau = _with_tableau(state.tableau, {move.target_pile: (*target, card.flipped(face_up=True))})
    foundations = _with_foundation(state.foundations, move.suit, foundation[:-1])
    return MoveResult(replace(state, tableau=tableau, foundations=foundations))


def apply_move(state: GameState, move: Move) -> MoveResult:
    """Apply ``move`` to ``state`` without touching ``state``.

    Illegal moves come back with the same state and a Rejection. Undo
    needs history and is handled by ``Klondike.submit``.
    """
    if isinstance(move, Draw):
        return _draw(state)
    elif isinstance(move, TableauToTableau):
        return _move_tableau_to_tableau(state, move)
    elif isinstance(move, WasteToTableau):
        return _move_waste_to_tableau(state, move)
    elif isinstance(move, ToFoundation):
        return _move_to_foundation(state, move)
    elif isinstance(move, FoundationToTableau):
        return _move_foundation_to_tableau(state, move)
    elif isinstance(move, Undo):
        msg = "Undo needs a history; submit it through Klondike"
        raise ValueError(msg)
    else:
        msg = f"Invalid move: {move!r}"
        raise ValueError(msg)


def legal_moves(state: GameState) -> list[Move]:
    """Every move the executor would accept in ``state``, for hints."""
    candidates: list[Move] = [Draw()]

    waste_top = _top(state.waste)
    if waste_top is not None:
        candidates.append(ToFoundation(WasteSource(), waste_top.suit))
        candidates.extend(WasteToTableau(idx) for idx in range(TABLEAU_COUNT))

    for pile_idx, pile in enumerate(state.tableau):
        tableau_top = _top(pile)
        if tableau_top is None:
            continue
        candidates.append(ToFoundation(TableauSource(pile_idx, len(pile) - 1), tableau_top.suit))
        for card_idx, card in enumerate(pile):
            if not card.face_up:
                continue
            candidates.extend(
                TableauToTableau(pile_idx, card_idx, other_idx)
                for other_idx in range(TABLEAU_COUNT)
                if other_idx != pile_idx
            )

    for suit in Suit:
        if len(state.foundation(suit)) == 0:
            continue
        candidates.extend(FoundationToTableau(suit, idx) for idx in range(TABLEAU_COUNT))

    return [move for move in candidates if apply_move(state, move).accepted]


class KlondikeState(str, Enum):
    PLAYING = "PLAYING"
    WON = "WON"


@dataclass(kw_only=True, frozen=True)
class Render:
    state: str
    tableau: list[list[Card]]
    stock: list[Card]
    waste: list[Card]
    foundations: dict[Suit, list[Card]]
    has_won: bool
    can_undo: bool
    move_count: int
    undo_count: int

    def as_jsonable_dict(self) -> dict[str, Any]:
        """Plain data for a renderer. Face-down cards only expose their face."""

        def visible(card: Card) -> dict:
            if not card.face_up:
                return {"face_up": False}
            return card.as_jsonable_dict()

        return {
            "state": self.state,
            "tableau": [[visible(card) for card in pile] for pile in self.tableau],
            "stock": [visible(card) for card in self.stock],
            "waste": [visible(card) for card in self.waste],
            "foundations": {suit.value: [visible(card) for card in pile] for suit, pile in self.foundations.items()},
            "has_won": self.has_won,
            "can_undo": self.can_undo,
            "move_count": self.move_count,
            "undo_count": self.undo_count,
        }


class Klondike:
    """The game as the presentation layer sees it.

    Owns the current GameState and the undo slot. Moves go in through
    ``submit``; the UI re-renders from ``render()`` afterwards. Not
    thread-safe: callers submitting from several threads must serialize
    through one lock.
    """

    def __init__(self, seed: int | None = None, state: GameState | None = None) -> None:
        """Deal a game from ``seed``, or start from ``state`` when given.

        ``state`` is a hook for tests and puzzle setups and is installed as
        is: it may be a partial position, so the one-deck invariant is not
        checked. Call ``state.check_integrity()`` first when that matters.
        """
        self.seed = seed
        self.rng = random.Random(seed)
        self.history = History()
        self.move_count = 0
        self.undo_count = 0
        if state is None:
            self.state = new_game(self.rng)
            logger.info("Dealt new game (seed=%s)", seed)
        else:
            self.state = state

    def reset(self) -> None:
        self.history.clear()
        self.move_count = 0
        self.undo_count = 0
        self.state = new_game(self.rng)
        logger.info("Dealt new game (seed=%s)", self.seed)

    @property
    def has_won(self) -> bool:
        return is_won(self.state.foundations)

    @property
    def can_undo(self) -> bool:
        return self.history.has_undo

    @property
    def status(self) -> KlondikeState:
        return KlondikeState.WON if self.has_won else KlondikeState.PLAYING

    def submit(self, move: Move) -> MoveResult:
        if isinstance(move, Undo):
            return self.undo()

        result = apply_move(self.state, move)
        if result.rejection is not None:
            logger.debug("Rejected %s: %s", move, result.rejection.value)
            return result

        self.history.save_snapshot(self.state)
        self.state = result.state
        self.move_count += 1
        logger.debug("Applied %s", move)
        if self.has_won:
            logger.info("Game won after %d moves", self.move_count)
        return result

    def undo(self) -> MoveResult:
        snapshot = self.history.undo()
        if snapshot is None:
            logger.debug("Rejected %s: %s", Undo(), Rejection.NOTHING_TO_UNDO.value)
            return _reject(self.state, Rejection.NOTHING_TO_UNDO)
        self.state = snapshot
        self.undo_count += 1
        logger.debug("Applied %s", Undo())
        return MoveResult(self.state)

    def legal_moves(self) -> list[Move]:
        return legal_moves(self.state)

    def render(self) -> Render:
        return Render(
            state=self.status.value,
            tableau=[list(pile) for pile in self.state.tableau],
            stock=list(self.state.stock),
            waste=list(self.state.waste),
            foundations={suit: list(pile) for suit, pile in self.state.foundation_map().items()},
            has_won=self.has_won,
            can_undo=self.can_undo,
            move_count=self.move_count,
            undo_count=self.undo_count,
        )

    @override
    def __str__(self) -> str:
        rows = [
            f"stock: {len(self.state.stock)}  waste: {_top(self.state.waste) or '--'}",
            "foundations: "
            + "  ".join(f"{suit}{_top(pile) or '--'}" for suit, pile in self.state.foundation_map().items()),
        ]
        for idx, pile in enumerate(self.state.tableau):
            cards = " ".join(str(card) if card.face_up else "##" for card in pile)
            rows.append(f"{idx}: {cards}")
        return "\n".join(rows)

import random
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, override


class Color(str, Enum):
    RED = "RED"
    BLACK = "BLACK"


class Suit(str, Enum):
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def color(self) -> Color:
        if self == Suit.HEARTS or self == Suit.DIAMONDS:
            return Color.RED
        elif self == Suit.CLUBS or self == Suit.SPADES:
            return Color.BLACK
        else:
            msg = f"Suit {self} has no color"
            raise ValueError(msg)

    @override
    def __str__(self) -> str:
        return {
            Suit.HEARTS: "♥",
            Suit.DIAMONDS: "♦",
            Suit.CLUBS: "♣",
            Suit.SPADES: "♠",
        }[self]

    def __int__(self) -> int:
        return list(Suit).index(self)


class Rank(str, Enum):
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def ordinal(self) -> int:
        """Position in the A..K ordering, Ace is 0 and King is 12."""
        return list(Rank).index(self)

    @staticmethod
    def from_ordinal(ordinal: int) -> "Rank":
        ranks = list(Rank)
        if not 0 <= ordinal < len(ranks):
            msg = f"Invalid rank ordinal {ordinal}"
            raise ValueError(msg)
        return ranks[ordinal]

    @override
    def __str__(self) -> str:
        return self.value

    @override
    def __repr__(self) -> str:
        return self.value


@dataclass(frozen=True, eq=False)
class Card:
    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def color(self) -> Color:
        return self.suit.color

    def flipped(self, *, face_up: bool) -> "Card":
        if self.face_up == face_up:
            return self
        return replace(self, face_up=face_up)

    def as_jsonable_dict(self) -> dict:
        return {
            "suit": self.suit.value,
            "rank": self.rank.value,
            "color": self.color.value,
            "face_up": self.face_up,
        }

    @override
    def __str__(self) -> str:
        return f"{self.rank} {self.suit}"

    @override
    def __repr__(self) -> str:
        return f"{self.rank} {self.suit}{'' if self.face_up else ' (down)'}"

    @override
    def __eq__(self, other: Any) -> bool:  # pyright: ignore [reportAny]
        if not isinstance(other, Card):
            return False
        return self.suit == other.suit and self.rank == other.rank

    @override
    def __hash__(self) -> int:
        return hash((self.suit, self.rank))


def canonical_deck() -> list[Card]:
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def generate_deck(rng: random.Random | None = None) -> list[Card]:
    """Return the 52 cards face-down in a uniformly random order.

    ``random.Random.shuffle`` is a Fisher-Yates shuffle, so every
    permutation is equally likely. Pass a seeded ``random.Random`` to get
    the same deck on every run.
    """
    deck = canonical_deck()
    (rng or random.Random()).shuffle(deck)
    return deck

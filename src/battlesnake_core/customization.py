"""Cosmetic catalog: snake colors, head variants and tail pass-through."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Union

from battlesnake_core.errors import MalformedState, UnknownVariant


class Head(enum.Enum):
    """Head styles known to the game engine."""

    DEFAULT = enum.auto()
    BELUGA = enum.auto()
    BENDR = enum.auto()
    DEAD = enum.auto()
    EVIL = enum.auto()
    FANG = enum.auto()
    PIXEL = enum.auto()
    SAFE = enum.auto()
    SAND_WORM = enum.auto()
    SHADES = enum.auto()
    SILLY = enum.auto()
    SMILE = enum.auto()
    TOUNGE = enum.auto()
    BOWLER = enum.auto()
    MARK = enum.auto()
    ALL_SEEING = enum.auto()
    SMART_CATERPILLAR = enum.auto()
    TRANS_RIGHTS = enum.auto()
    BONHOMME = enum.auto()
    EARMUFFS = enum.auto()
    RUDOLPH = enum.auto()
    SCARF = enum.auto()
    SKI = enum.auto()
    SNOWMAN = enum.auto()
    SNOW_WORM = enum.auto()
    CAFFINE = enum.auto()
    GAMER = enum.auto()
    TIGER_KING = enum.auto()
    WORKOUT = enum.auto()


# Wire names are the engine's spelling, typos included ("tounge", "caffine").
_HEAD_NAMES: dict[Head, str] = {
    Head.DEFAULT: "default",
    Head.BELUGA: "beluga",
    Head.BENDR: "bendr",
    Head.DEAD: "dead",
    Head.EVIL: "evil",
    Head.FANG: "fang",
    Head.PIXEL: "pixel",
    Head.SAFE: "safe",
    Head.SAND_WORM: "sand-worm",
    Head.SHADES: "shades",
    Head.SILLY: "silly",
    Head.SMILE: "smile",
    Head.TOUNGE: "tounge",
    Head.BOWLER: "rbc-bowler",
    Head.MARK: "replit-mark",
    Head.ALL_SEEING: "all-seeing",
    Head.SMART_CATERPILLAR: "smart-caterpillar",
    Head.TRANS_RIGHTS: "trans-rights-scarf",
    Head.BONHOMME: "bonhomme",
    Head.EARMUFFS: "earmuffs",
    Head.RUDOLPH: "rudolph",
    Head.SCARF: "scarf",
    Head.SKI: "ski",
    Head.SNOWMAN: "snowman",
    Head.SNOW_WORM: "snow-worm",
    Head.CAFFINE: "caffine",
    Head.GAMER: "gamer",
    Head.TIGER_KING: "tiger-king",
    Head.WORKOUT: "workout",
}

_HEADS_BY_NAME: dict[str, Head] = {name: head for head, name in _HEAD_NAMES.items()}


def _check_head_table() -> None:
    missing = [h.name for h in Head if h not in _HEAD_NAMES]
    if missing:
        raise RuntimeError(f"Head variants without a wire name: {missing}")
    if len(_HEADS_BY_NAME) != len(_HEAD_NAMES):
        raise RuntimeError("Head wire names are not unique.")


_check_head_table()


def parse(name: str) -> Head:
    """Return the head variant for an exact wire *name*.

    Raises :class:`UnknownVariant` for anything outside the catalog.
    """
    try:
        return _HEADS_BY_NAME[name]
    except (KeyError, TypeError):
        raise UnknownVariant(str(name)) from None


def to_name(head: Head) -> str:
    """Return the wire name of *head*."""
    return _HEAD_NAMES[head]


def head_names() -> list[str]:
    """All wire names, in catalog order."""
    return [_HEAD_NAMES[h] for h in Head]


_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


@dataclass(frozen=True)
class Color:
    """A 24-bit RGB color; black unless configured otherwise."""

    r: int = 0
    g: int = 0
    b: int = 0

    def __post_init__(self) -> None:
        for channel in (self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                raise MalformedState(f"Color channel {channel} outside 0-255.")

    @classmethod
    def parse(cls, value: str) -> Color:
        """Parse a ``#rrggbb`` hex string."""
        if not isinstance(value, str) or not _HEX_COLOR.match(value):
            raise MalformedState(f"Invalid color {value!r}; expected #rrggbb.")
        return cls(int(value[1:3], 16), int(value[3:5], 16), int(value[5:7], 16))

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


# Tail styles have no closed catalog: the engine's name or index is kept as-is.
Tail = Union[str, int]


@dataclass(frozen=True)
class Customization:
    """Appearance snapshot copied into each decoded snake."""

    color: Color = Color()
    head: Head = Head.DEFAULT
    tail: Tail | None = None

    def to_dict(self) -> dict:
        result: dict = {"color": self.color.to_hex(), "head": to_name(self.head)}
        if self.tail is not None:
            result["tail"] = self.tail
        return result

"""
Fan Mahjong Meld Module

Classifies small groups of tiles (and whole 14-tile hands) into melds.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import List, Optional

from .tiles import Tile, TileSuit, SuitColor, ORPHANS

# Tolerance for comparing tile values when checking sequences
VALUE_EPSILON = 1e-4


class MeldType(IntEnum):
    """Classification of a tile group"""
    INVALID = 0
    CHOW = 1              # 顺子 - Sequence of 3 consecutive tiles in same suit
    PUNG = 2              # 刻子 - 3 identical tiles
    KONG = 3              # 杠 - 4 identical tiles
    EYE = 4               # 将 - A pair
    SEVEN_PAIRS = 5       # 七对 - Fourteen tiles in seven pairs
    THIRTEEN_ORPHANS = 6  # 十三幺 - One of each terminal and honour plus a duplicate
    NINE_GATES = 7        # 九莲宝灯 - 1112345678999 plus one, single suit, concealed


GROUP_TYPES = (MeldType.CHOW, MeldType.PUNG, MeldType.KONG)
SPECIAL_TYPES = (MeldType.SEVEN_PAIRS, MeldType.THIRTEEN_ORPHANS, MeldType.NINE_GATES)


def _approx_equal(a: float, b: float, epsilon: float = VALUE_EPSILON) -> bool:
    return abs(a - b) < epsilon


def classify(tiles: List[Tile], concealed: bool = False) -> MeldType:
    """
    Classify an ordered group of tiles.

    Args:
        tiles: 2, 3, 4 or 14 tiles
        concealed: Whether the group was formed without claimed tiles
            (Nine Gates requires it)

    Returns:
        The single matching MeldType, or MeldType.INVALID
    """
    size = len(tiles)

    if size == 14:
        return _classify_special(tiles, concealed)

    if size == 2:
        return MeldType.EYE if tiles[0] == tiles[1] else MeldType.INVALID

    if size == 4:
        if all(t == tiles[0] for t in tiles[1:]):
            return MeldType.KONG
        return MeldType.INVALID

    if size != 3:
        return MeldType.INVALID

    if tiles[0] == tiles[1] == tiles[2]:
        return MeldType.PUNG

    # Only a chow is left: same simple suit, consecutive values
    if any(t.color != SuitColor.SIMPLE for t in tiles):
        return MeldType.INVALID
    if not tiles[0].suit == tiles[1].suit == tiles[2].suit:
        return MeldType.INVALID

    values = sorted(float(t.value) for t in tiles)
    if not _approx_equal(values[0] + 1.0, values[1]) or not _approx_equal(values[1] + 1.0, values[2]):
        return MeldType.INVALID

    return MeldType.CHOW


def _classify_special(tiles: List[Tile], concealed: bool) -> MeldType:
    """Whole-hand shapes, tested in order: thirteen orphans, seven pairs, nine gates"""
    if _is_thirteen_orphans(tiles):
        return MeldType.THIRTEEN_ORPHANS
    if _is_seven_pairs(tiles):
        return MeldType.SEVEN_PAIRS
    if concealed and _is_nine_gates(tiles):
        return MeldType.NINE_GATES
    return MeldType.INVALID


def _is_thirteen_orphans(tiles: List[Tile]) -> bool:
    """Each of the thirteen orphan kinds once, plus one more of any of them"""
    if not all(t.is_terminal_or_honor for t in tiles):
        return False
    return all(orphan in tiles for orphan in ORPHANS)


def _is_seven_pairs(tiles: List[Tile]) -> bool:
    """Repeatedly pair off the first remaining tile"""
    remaining = list(tiles)
    for _ in range(7):
        first = remaining.pop(0)
        if first not in remaining:
            return False
        remaining.remove(first)
    return not remaining


def _is_nine_gates(tiles: List[Tile]) -> bool:
    """1112345678999 of one simple suit plus any fourteenth tile of that suit"""
    suit = tiles[0].suit
    if tiles[0].color != SuitColor.SIMPLE:
        return False
    if any(t.suit != suit for t in tiles):
        return False

    remaining = list(tiles)
    for value in range(1, 10):
        needed = 3 if value in (1, 9) else 1
        for _ in range(needed):
            tile = Tile(suit, value)
            if tile not in remaining:
                return False
            remaining.remove(tile)

    return len(remaining) == 1


@dataclass
class Meld:
    """
    A classified group of tiles.

    Attributes:
        tiles: The tiles of the meld (chows are kept sorted by value)
        concealed: True if the meld was not made from a claimed tile
        meld_type: Classification, derived from the tiles
        exposed_from_exposed: True for a kong made by adding a tile to an exposed pung
    """
    tiles: List[Tile]
    concealed: bool = False
    meld_type: MeldType = field(init=False, default=MeldType.INVALID)
    exposed_from_exposed: bool = field(init=False, default=False)

    def __post_init__(self):
        self.tiles = list(self.tiles)
        self.meld_type = classify(self.tiles, self.concealed)
        if self.meld_type == MeldType.CHOW:
            self.tiles.sort(key=lambda t: t.value)

    @property
    def valid(self) -> bool:
        return self.meld_type != MeldType.INVALID

    @property
    def exposed(self) -> bool:
        return not self.concealed

    @property
    def is_chow(self) -> bool:
        return self.meld_type == MeldType.CHOW

    @property
    def is_pung(self) -> bool:
        return self.meld_type == MeldType.PUNG

    @property
    def is_kong(self) -> bool:
        return self.meld_type == MeldType.KONG

    @property
    def is_eye(self) -> bool:
        return self.meld_type == MeldType.EYE

    @property
    def is_pung_or_kong(self) -> bool:
        return self.meld_type in (MeldType.PUNG, MeldType.KONG)

    @property
    def is_group(self) -> bool:
        """Chow, pung or kong"""
        return self.meld_type in GROUP_TYPES

    @property
    def is_special(self) -> bool:
        """Seven pairs, thirteen orphans or nine gates"""
        return self.meld_type in SPECIAL_TYPES

    @property
    def base_tile(self) -> Tile:
        """Get the base tile of the meld (lowest in sequence or the identical tile)"""
        return self.tiles[0]

    @property
    def suit(self) -> TileSuit:
        return self.tiles[0].suit

    def convert_to_kong(self, tile: Tile) -> bool:
        """
        Add a fourth tile to a pung.

        Returns:
            True if the meld was a pung of `tile` and is now a kong,
            False (meld untouched) otherwise
        """
        if self.meld_type != MeldType.PUNG:
            return False
        if self.tiles[0] != tile:
            return False

        self.tiles.append(tile)
        self.meld_type = MeldType.KONG
        if self.exposed:
            self.exposed_from_exposed = True
        return True

    def expose(self) -> None:
        """Mark the meld as containing a claimed tile"""
        self.concealed = False

    def copy(self) -> 'Meld':
        """Create a deep copy of the meld"""
        new_meld = Meld.__new__(Meld)
        new_meld.tiles = [Tile(t.suit, t.value, t.id) for t in self.tiles]
        new_meld.concealed = self.concealed
        new_meld.meld_type = self.meld_type
        new_meld.exposed_from_exposed = self.exposed_from_exposed
        return new_meld

    def contains_instance(self, tile: Tile) -> bool:
        """Check whether this exact physical tile is part of the meld"""
        return any(t is tile for t in self.tiles)

    def __repr__(self) -> str:
        return f"Meld({self.meld_type.name}, {self.tiles}, concealed={self.concealed})"

    def __str__(self) -> str:
        if not self.valid:
            return "[]"
        tiles_str = " ".join(str(t) for t in self.tiles)
        concealed = "暗" if self.concealed else "明"
        return f"[{concealed}{self.meld_type.name}: {tiles_str}]"


def make_meld(tiles: List[Tile], concealed: bool = False) -> Optional[Meld]:
    """Build a meld, or None if the tiles do not form one"""
    meld = Meld(tiles, concealed)
    return meld if meld.valid else None

"""
Fan Mahjong Tiles System

Defines the 144 tiles of a full Mahjong set:
- 9 Characters (万) x4 = 36
- 9 Bamboos (条) x4 = 36
- 9 Dots (筒) x4 = 36
- 4 Winds (东南西北) x4 = 16
- 3 Dragons (中发白) x4 = 12
- 4 Flowers (梅兰菊竹) x1 = 4
- 4 Seasons (春夏秋冬) x1 = 4
Total: 144 tiles

Suits form a closed set of tags; the colour of a suit (simple, honour or
bonus) is derived from the tag by `suit_color`.
"""

from enum import IntEnum
from dataclasses import dataclass
from typing import List, Optional, Union
import numpy as np


class TileSuit(IntEnum):
    """Tile suits"""
    CHARACTERS = 0  # 万 (Wan) - Numbers 1-9
    BAMBOOS = 1     # 条 (Tiao) - Numbers 1-9
    DOTS = 2        # 筒 (Tong) - Numbers 1-9
    WINDS = 3       # 风 (Feng) - East, South, West, North
    DRAGONS = 4     # 箭 (Jian) - Red, Green, White
    FLOWERS = 5     # 花 - Plum, Orchid, Chrysanthemum, Bamboo
    SEASONS = 6     # 季 - Spring, Summer, Autumn, Winter


class SuitColor(IntEnum):
    """Broad families of suits"""
    SIMPLE = 0
    HONOURS = 1
    BONUS = 2


class WindType(IntEnum):
    """Wind tile types"""
    EAST = 0   # 东
    SOUTH = 1  # 南
    WEST = 2   # 西
    NORTH = 3  # 北

    def rotate(self) -> 'WindType':
        """The wind a seat holds after the deal passes (South becomes East)"""
        return WindType((self - 1) % 4)


class DragonType(IntEnum):
    """Dragon tile types"""
    RED = 0    # 中 (Zhong)
    GREEN = 1  # 发 (Fa)
    WHITE = 2  # 白 (Bai)


SIMPLE_SUITS = (TileSuit.CHARACTERS, TileSuit.BAMBOOS, TileSuit.DOTS)
HONOR_SUITS = (TileSuit.WINDS, TileSuit.DRAGONS)
BONUS_SUITS = (TileSuit.FLOWERS, TileSuit.SEASONS)


def suit_color(suit: TileSuit) -> SuitColor:
    """Colour family of a suit"""
    if suit in SIMPLE_SUITS:
        return SuitColor.SIMPLE
    if suit in HONOR_SUITS:
        return SuitColor.HONOURS
    return SuitColor.BONUS


@dataclass(frozen=True)
class Tile:
    """
    Represents a single Mahjong tile.

    Attributes:
        suit: The suit of the tile
        value: 1-9 for simple suits, WindType/DragonType for honours,
            the associated WindType for flowers and seasons
        id: Identifier of this physical tile (0-143); ignored by equality
    """
    suit: TileSuit
    value: int
    id: int = 0

    def __post_init__(self):
        """Validate tile values"""
        if self.suit in SIMPLE_SUITS:
            if not 1 <= self.value <= 9:
                raise ValueError(f"Numbered suits must have value 1-9, got {self.value}")
        elif self.suit == TileSuit.DRAGONS:
            if not 0 <= self.value <= 2:
                raise ValueError(f"Dragon tiles must have value 0-2, got {self.value}")
        elif not 0 <= self.value <= 3:
            raise ValueError(f"{self.suit.name.title()} tiles must have value 0-3, got {self.value}")

    @property
    def color(self) -> SuitColor:
        return suit_color(self.suit)

    @property
    def is_honor(self) -> bool:
        """Check if tile is an honor tile (Wind or Dragon)"""
        return self.suit in HONOR_SUITS

    @property
    def is_bonus(self) -> bool:
        """Check if tile is a flower or season"""
        return self.suit in BONUS_SUITS

    @property
    def is_terminal(self) -> bool:
        """Check if tile is a terminal (1 or 9 of numbered suits)"""
        if self.suit in SIMPLE_SUITS:
            return self.value in (1, 9)
        return False

    @property
    def is_terminal_or_honor(self) -> bool:
        """Check if tile is terminal or honor"""
        return self.is_terminal or self.is_honor

    @property
    def is_simple(self) -> bool:
        """Check if tile belongs to a numbered suit"""
        return self.suit in SIMPLE_SUITS

    @property
    def tile_index(self) -> int:
        """
        Get unique index for this tile type (0-41).
        Used for encoding tile types (not instances).
        """
        if self.suit in SIMPLE_SUITS:
            return self.suit * 9 + self.value - 1  # 0-26
        elif self.suit == TileSuit.WINDS:
            return 27 + self.value  # 27-30
        elif self.suit == TileSuit.DRAGONS:
            return 31 + self.value  # 31-33
        elif self.suit == TileSuit.FLOWERS:
            return 34 + self.value  # 34-37
        else:  # SEASONS
            return 38 + self.value  # 38-41

    @property
    def sort_key(self):
        return (int(self.suit), self.value)

    def __eq__(self, other) -> bool:
        """Two tiles are equal if they have same suit and value (ignoring instance id)"""
        if not isinstance(other, Tile):
            return False
        return self.suit == other.suit and self.value == other.value

    def __hash__(self) -> int:
        return hash((self.suit, self.value))

    def __lt__(self, other) -> bool:
        """Comparison for sorting"""
        if not isinstance(other, Tile):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __repr__(self) -> str:
        return f"Tile({self.suit.name}, {self.value})"

    def __str__(self) -> str:
        """Human-readable string representation"""
        if self.suit == TileSuit.CHARACTERS:
            return f"{self.value}万"
        elif self.suit == TileSuit.BAMBOOS:
            return f"{self.value}条"
        elif self.suit == TileSuit.DOTS:
            return f"{self.value}筒"
        elif self.suit == TileSuit.WINDS:
            return WIND_NAMES[self.value]
        elif self.suit == TileSuit.DRAGONS:
            return DRAGON_NAMES[self.value]
        elif self.suit == TileSuit.FLOWERS:
            return FLOWER_NAMES[self.value]
        return SEASON_NAMES[self.value]

    @classmethod
    def from_index(cls, tile_index: int, instance_id: int = 0) -> 'Tile':
        """
        Create a tile from its type index (0-41).

        Args:
            tile_index: Tile type index (0-41)
            instance_id: Physical tile identifier
        """
        if tile_index < 27:
            return cls(TileSuit(tile_index // 9), tile_index % 9 + 1, instance_id)
        elif tile_index < 31:
            return cls(TileSuit.WINDS, tile_index - 27, instance_id)
        elif tile_index < 34:
            return cls(TileSuit.DRAGONS, tile_index - 31, instance_id)
        elif tile_index < 38:
            return cls(TileSuit.FLOWERS, tile_index - 34, instance_id)
        return cls(TileSuit.SEASONS, tile_index - 38, instance_id)

    @classmethod
    def from_string(cls, s: str, instance_id: int = 0) -> 'Tile':
        """
        Create tile from string representation.

        Args:
            s: String like "1万", "9条", "东", "中", "梅", "春"
            instance_id: Physical tile identifier
        """
        s = s.strip()

        if len(s) == 2 and s[0].isdigit():
            value = int(s[0])
            suits = {'万': TileSuit.CHARACTERS, '条': TileSuit.BAMBOOS, '筒': TileSuit.DOTS}
            if s[1] in suits:
                return cls(suits[s[1]], value, instance_id)

        for suit, names in ((TileSuit.WINDS, WIND_NAMES), (TileSuit.DRAGONS, DRAGON_NAMES),
                            (TileSuit.FLOWERS, FLOWER_NAMES), (TileSuit.SEASONS, SEASON_NAMES)):
            if s in names:
                return cls(suit, names.index(s), instance_id)

        raise ValueError(f"Cannot parse tile string: {s}")


WIND_NAMES = ["东", "南", "西", "北"]
DRAGON_NAMES = ["中", "发", "白"]
FLOWER_NAMES = ["梅", "兰", "菊", "竹"]
SEASON_NAMES = ["春", "夏", "秋", "冬"]


class TileSet:
    """
    An ordered collection of tiles.
    Used to represent hands, bonus tile holdings and discard piles.
    Tiles keep their insertion order.
    """

    # Total number of unique tile types, bonus tiles included
    NUM_TILE_TYPES = 42
    # Number of tile types that can be held in a hand
    NUM_PLAYABLE_TYPES = 34
    # Total tiles in a complete set
    NUM_TILES = 144
    # Copies of each suit or honour tile type
    COPIES_PER_TYPE = 4

    def __init__(self, tiles: Optional[List[Tile]] = None):
        """Initialize tile set with optional list of tiles"""
        self.tiles: List[Tile] = list(tiles) if tiles else []

    def add(self, tile: Tile) -> None:
        """Add a tile to the set"""
        self.tiles.append(tile)

    def draw(self, tiles: List[Tile]) -> None:
        """Add several tiles to the end of the set"""
        self.tiles.extend(tiles)

    def remove(self, tile: Tile) -> bool:
        """
        Remove a tile from the set (matches by suit and value).
        Returns True if removed, False if not found.
        """
        for i, t in enumerate(self.tiles):
            if t == tile:
                self.tiles.pop(i)
                return True
        return False

    def play(self, tile_or_index: Union[Tile, int]) -> Tile:
        """
        Take a tile out of the set, by value or by position.

        Raises:
            ValueError: if the tile is not held or the index is out of range
        """
        if isinstance(tile_or_index, Tile):
            for i, t in enumerate(self.tiles):
                if t == tile_or_index:
                    return self.tiles.pop(i)
            raise ValueError(f"{tile_or_index!r} is not in the tile set")
        if not 0 <= tile_or_index < len(self.tiles):
            raise ValueError(f"Index {tile_or_index} out of range for {len(self.tiles)} tiles")
        return self.tiles.pop(tile_or_index)

    def contains(self, tile: Tile) -> bool:
        """Check if tile is in the set"""
        return tile in self.tiles

    def count(self, tile: Tile) -> int:
        """Count occurrences of a tile type"""
        return sum(1 for t in self.tiles if t == tile)

    def to_count_array(self) -> np.ndarray:
        """
        Convert to a 42-element array counting each tile type.
        Useful for hand analysis and encoding.
        """
        counts = np.zeros(self.NUM_TILE_TYPES, dtype=np.int8)
        for tile in self.tiles:
            counts[tile.tile_index] += 1
        return counts

    @classmethod
    def create_full_set(cls, bonus_tiles: bool = True) -> 'TileSet':
        """Create a complete set of 144 tiles (136 without bonus tiles)"""
        tiles = []
        instance_id = 0

        for tile_index in range(34):
            for _ in range(cls.COPIES_PER_TYPE):
                tiles.append(Tile.from_index(tile_index, instance_id))
                instance_id += 1

        if bonus_tiles:
            for tile_index in range(34, 42):
                tiles.append(Tile.from_index(tile_index, instance_id))
                instance_id += 1

        return cls(tiles)

    def get_unique_tiles(self) -> List[Tile]:
        """Get list of unique tile types in the set, in first-seen order"""
        seen = set()
        unique = []
        for tile in self.tiles:
            if tile not in seen:
                seen.add(tile)
                unique.append(tile)
        return unique

    def copy(self) -> 'TileSet':
        """Create a copy of this tile set"""
        return TileSet([Tile(t.suit, t.value, t.id) for t in self.tiles])

    def __eq__(self, other) -> bool:
        if not isinstance(other, TileSet):
            return NotImplemented
        return self.tiles == other.tiles

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self):
        return iter(self.tiles)

    def __getitem__(self, index):
        return self.tiles[index]

    def __repr__(self) -> str:
        return f"TileSet({len(self.tiles)} tiles)"

    def __str__(self) -> str:
        return " ".join(str(t) for t in sorted(self.tiles))


# Convenience functions for creating specific tiles
def char(value: int, instance_id: int = 0) -> Tile:
    """Create a Characters tile (1-9万)"""
    return Tile(TileSuit.CHARACTERS, value, instance_id)

def bam(value: int, instance_id: int = 0) -> Tile:
    """Create a Bamboos tile (1-9条)"""
    return Tile(TileSuit.BAMBOOS, value, instance_id)

def dot(value: int, instance_id: int = 0) -> Tile:
    """Create a Dots tile (1-9筒)"""
    return Tile(TileSuit.DOTS, value, instance_id)

def wind(wind_type: WindType, instance_id: int = 0) -> Tile:
    """Create a Wind tile (东南西北)"""
    return Tile(TileSuit.WINDS, wind_type, instance_id)

def dragon(dragon_type: DragonType, instance_id: int = 0) -> Tile:
    """Create a Dragon tile (中发白)"""
    return Tile(TileSuit.DRAGONS, dragon_type, instance_id)

def flower(wind_type: WindType, instance_id: int = 0) -> Tile:
    """Create a Flower tile (梅兰菊竹)"""
    return Tile(TileSuit.FLOWERS, wind_type, instance_id)

def season(wind_type: WindType, instance_id: int = 0) -> Tile:
    """Create a Season tile (春夏秋冬)"""
    return Tile(TileSuit.SEASONS, wind_type, instance_id)


# Named wind tiles
EAST = Tile(TileSuit.WINDS, WindType.EAST)
SOUTH = Tile(TileSuit.WINDS, WindType.SOUTH)
WEST = Tile(TileSuit.WINDS, WindType.WEST)
NORTH = Tile(TileSuit.WINDS, WindType.NORTH)

# Named dragon tiles
RED_DRAGON = Tile(TileSuit.DRAGONS, DragonType.RED)
GREEN_DRAGON = Tile(TileSuit.DRAGONS, DragonType.GREEN)
WHITE_DRAGON = Tile(TileSuit.DRAGONS, DragonType.WHITE)

# The thirteen terminal and honour kinds
ORPHANS = [
    char(1), char(9), bam(1), bam(9), dot(1), dot(9),
    EAST, SOUTH, WEST, NORTH,
    RED_DRAGON, GREEN_DRAGON, WHITE_DRAGON,
]

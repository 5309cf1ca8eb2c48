"""
Fan Mahjong Wall Module

Handles the wall (tile pile), dealing, and drawing.
"""

import logging
from typing import List, Optional
from dataclasses import dataclass, field

import numpy as np

from .tiles import Tile, TileSet

logger = logging.getLogger(__name__)


@dataclass
class Wall:
    """
    Represents the Mahjong wall.

    Regular draws come from the live end of the wall; kong and bonus tile
    replacements come from the opposite end.

    Attributes:
        tiles: Remaining tiles in the wall; a fresh shuffled set when omitted
        rng: Generator used for shuffling; owned by the game state
        bonus_tiles: Whether flowers and seasons are part of the set
        dealt_count: Number of tiles that have been dealt/drawn
    """
    tiles: Optional[List[Tile]] = None
    rng: Optional[np.random.Generator] = field(default=None, repr=False, compare=False)
    bonus_tiles: bool = True
    dealt_count: int = 0

    def __post_init__(self):
        if self.rng is None:
            self.rng = np.random.default_rng()
        if self.tiles is None:
            self._create_wall()
        else:
            self.tiles = list(self.tiles)

    def _create_wall(self) -> None:
        """Create and shuffle a new wall"""
        self.tiles = list(TileSet.create_full_set(self.bonus_tiles).tiles)
        self.shuffle()

    def shuffle(self) -> None:
        """Shuffle the wall"""
        self.rng.shuffle(self.tiles)

    def draw(self) -> Optional[Tile]:
        """
        Draw one tile from the live end of the wall.
        Returns None if wall is empty.
        """
        if not self.tiles:
            return None
        self.dealt_count += 1
        return self.tiles.pop()

    def draw_replacement(self) -> Optional[Tile]:
        """
        Draw a replacement tile (after a kong or a bonus tile).
        Returns None if wall is empty.
        """
        if not self.tiles:
            return None
        self.dealt_count += 1
        return self.tiles.pop(0)

    def draw_many(self, count: int) -> List[Tile]:
        """
        Draw multiple tiles from the wall.
        Returns fewer tiles if wall doesn't have enough.
        """
        drawn = []
        for _ in range(count):
            tile = self.draw()
            if tile is None:
                break
            drawn.append(tile)
        return drawn

    def deal_hands(self, num_players: int = 4) -> List[List[Tile]]:
        """
        Deal initial hands to all players.
        Each player gets 13 tiles.

        Returns list of hands (each hand is a list of 13 tiles).
        """
        hands = [[] for _ in range(num_players)]

        # Deal 4 tiles at a time, 3 rounds
        for _ in range(3):
            for player_idx in range(num_players):
                hands[player_idx].extend(self.draw_many(4))

        # Deal 1 final tile to each player
        for player_idx in range(num_players):
            tile = self.draw()
            if tile:
                hands[player_idx].append(tile)

        logger.debug(f"Dealt {num_players} hands, {self.remaining} tiles left in the wall")
        return hands

    @property
    def remaining(self) -> int:
        """Number of tiles remaining in the wall"""
        return len(self.tiles)

    @property
    def is_empty(self) -> bool:
        """Check if wall is empty"""
        return len(self.tiles) == 0

    def copy(self, rng: Optional[np.random.Generator] = None) -> 'Wall':
        """
        Create a copy of the wall.

        Args:
            rng: Generator for the copy; the copy shares no state with the original
        """
        new_wall = Wall.__new__(Wall)
        new_wall.tiles = [Tile(t.suit, t.value, t.id) for t in self.tiles]
        new_wall.rng = rng if rng is not None else np.random.default_rng()
        new_wall.bonus_tiles = self.bonus_tiles
        new_wall.dealt_count = self.dealt_count
        return new_wall

    def __len__(self) -> int:
        return len(self.tiles)

    def __repr__(self) -> str:
        return f"Wall({self.remaining} tiles remaining)"

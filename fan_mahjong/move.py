"""
Fan Mahjong Move Module

A move is what one seat submits for the current trick:
- Discard a tile
- Attempt a meld (optionally declaring Mahjong with it)
- Declare Mahjong (self-pick when no claimed tile is given)
- Pass, when none of the above applies
"""

from dataclasses import dataclass
from typing import Optional

from .tiles import Tile
from .meld import Meld


@dataclass
class Move:
    """
    A seat's move.

    Attributes:
        tile: The discarded tile, or the claimed / konged tile
        meld: Meld being attempted
        discard: True for a discard
        mahjong: True when the seat declares Mahjong
    """
    tile: Optional[Tile] = None
    meld: Optional[Meld] = None
    discard: bool = False
    mahjong: bool = False

    @classmethod
    def discard_tile(cls, tile: Tile) -> 'Move':
        return cls(tile=tile, discard=True)

    @classmethod
    def attempt(cls, meld: Meld, tile: Optional[Tile] = None, mahjong: bool = False) -> 'Move':
        """Claim `tile` into `meld`, or declare a kong of `tile` on one's own turn"""
        if tile is None:
            tile = meld.base_tile
        return cls(tile=tile, meld=meld, mahjong=mahjong)

    @classmethod
    def declare_mahjong(cls, tile: Optional[Tile] = None) -> 'Move':
        """Declare Mahjong on a claimed tile, or self-pick when `tile` is None"""
        return cls(tile=tile, mahjong=True)

    @classmethod
    def pass_move(cls) -> 'Move':
        return cls()

    @property
    def is_pass(self) -> bool:
        return not self.discard and self.meld is None and not self.mahjong

    @property
    def is_discard(self) -> bool:
        return self.discard

    @property
    def is_attempt(self) -> bool:
        return self.meld is not None

    @property
    def is_mahjong(self) -> bool:
        return self.mahjong

    @property
    def is_self_pick(self) -> bool:
        return self.mahjong and self.meld is None and self.tile is None

    def copy(self) -> 'Move':
        """Create a deep copy of the move"""
        tile = Tile(self.tile.suit, self.tile.value, self.tile.id) if self.tile is not None else None
        meld = self.meld.copy() if self.meld is not None else None
        return Move(tile=tile, meld=meld, discard=self.discard, mahjong=self.mahjong)

    def __str__(self) -> str:
        if self.is_discard:
            return f"Discard {self.tile}"
        if self.is_attempt:
            suffix = " + Mahjong" if self.mahjong else ""
            return f"Attempt {self.meld}{suffix}"
        if self.is_self_pick:
            return "Mahjong (self-pick)"
        if self.is_mahjong:
            return f"Mahjong on {self.tile}"
        return "Pass"

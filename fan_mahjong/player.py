"""
Fan Mahjong Player Module

Handles player state: hand, fixed melds, bonus tiles, score and seat wind.
"""

from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .tiles import Tile, TileSet, WindType
from .meld import Meld


class ControllerKind(IntEnum):
    """Who supplies a seat's moves"""
    HUMAN = 0
    AI = 1


@dataclass
class Controller:
    """
    Attached to a seat to say who plays it.

    Attributes:
        kind: Human or AI
        agent: The strategy object for AI seats (anything with act(state) -> Move)
    """
    kind: ControllerKind = ControllerKind.HUMAN
    agent: Optional[Any] = None

    @classmethod
    def human(cls) -> 'Controller':
        return cls(ControllerKind.HUMAN)

    @classmethod
    def ai(cls, agent: Any) -> 'Controller':
        return cls(ControllerKind.AI, agent)

    @property
    def is_ai(self) -> bool:
        return self.kind == ControllerKind.AI


@dataclass
class PlayerState:
    """
    Represents one seat at the table.

    Attributes:
        index: Seat index (0-3), fixed for the whole game
        seat_wind: Current seat wind; rotates when the deal passes
        hand: Concealed tiles
        melds: Fixed melds (Chows, Pungs, Kongs)
        bonus_tiles: Flowers and seasons set aside
        score: Current score
        controller: Who plays this seat; not part of the state's value
    """
    index: int
    seat_wind: WindType = WindType.EAST
    hand: TileSet = field(default_factory=TileSet)
    melds: List[Meld] = field(default_factory=list)
    bonus_tiles: TileSet = field(default_factory=TileSet)
    score: int = 0
    controller: Controller = field(default_factory=Controller.human, compare=False, repr=False)

    def add_tile(self, tile: Tile) -> None:
        """Add a tile to the player's hand"""
        self.hand.add(tile)

    def held_instance(self, tile: Tile) -> Optional[Tile]:
        """The first tile in hand equal to `tile`"""
        for t in self.hand:
            if t == tile:
                return t
        return None

    def form_meld(self, meld: Meld, claimed: Optional[Tile] = None) -> bool:
        """
        Move the meld's tiles from hand to a new fixed meld.

        Args:
            meld: Group to form; only its tile values matter
            claimed: Tile taken from another seat; it completes the meld
                instead of a tile from hand, and makes the meld exposed

        Returns:
            True if formed, False (nothing changed) if the hand cannot supply it
        """
        if not meld.is_group:
            return False

        needed = list(meld.tiles)
        if claimed is not None:
            if claimed not in needed:
                return False
            needed.remove(claimed)

        for tile in set(needed):
            if self.hand.count(tile) < needed.count(tile):
                return False

        tiles = [self.hand.play(tile) for tile in needed]
        if claimed is not None:
            tiles.append(claimed)
        self.melds.append(Meld(tiles, concealed=claimed is None))
        return True

    def declare_kong(self, tile: Tile) -> bool:
        """
        Declare a kong on one's own turn: concealed from four tiles in hand,
        or promoted by adding a tile from hand to an own pung.
        """
        if self.hand.count(tile) == 4:
            return self.form_meld(Meld([tile] * 4))

        if not self.hand.contains(tile):
            return False
        for meld in self.melds:
            if meld.is_pung and meld.base_tile == tile:
                meld.convert_to_kong(self.hand.play(tile))
                return True
        return False

    def kong_candidates(self) -> List[Tile]:
        """Tiles the player could declare a kong with on their own turn"""
        candidates = []
        for tile in self.hand.get_unique_tiles():
            if self.hand.count(tile) == 4:
                candidates.append(tile)
            elif any(m.is_pung and m.base_tile == tile for m in self.melds):
                candidates.append(tile)
        return candidates

    def can_chow(self, tile: Tile) -> List[Tuple[Tile, Tile]]:
        """
        Check if player can form a Chow with the given tile.
        Returns list of possible pairs from hand that would complete the Chow.
        Only valid for numbered suits.
        """
        if not tile.is_simple:
            return []

        possible = []
        hand_counts = self.hand.to_count_array()
        suit_offset = tile.suit * 9
        value = tile.value

        # (X-2, X-1), (X-1, X+1), (X+1, X+2)
        for low, high in ((value - 2, value - 1), (value - 1, value + 1), (value + 1, value + 2)):
            if low < 1 or high > 9:
                continue
            idx1, idx2 = suit_offset + low - 1, suit_offset + high - 1
            if hand_counts[idx1] > 0 and hand_counts[idx2] > 0:
                possible.append((Tile.from_index(idx1), Tile.from_index(idx2)))

        return possible

    def can_pung(self, tile: Tile) -> bool:
        """Check if player can form a Pung with the given tile"""
        return self.hand.count(tile) >= 2

    def can_kong(self, tile: Tile) -> bool:
        """Check if player can form a Kong with the given tile (from discard)"""
        return self.hand.count(tile) >= 3

    def rotate_wind(self) -> None:
        """Pass the deal: every seat wind moves back by one"""
        self.seat_wind = self.seat_wind.rotate()

    @property
    def num_tiles(self) -> int:
        """Tiles held in hand and melds"""
        return len(self.hand) + sum(len(m.tiles) for m in self.melds)

    def reset(self) -> None:
        """Reset player state for a new hand"""
        self.hand = TileSet()
        self.melds = []
        self.bonus_tiles = TileSet()

    def copy(self) -> 'PlayerState':
        """Create a deep copy of the player; the controller is shared"""
        return PlayerState(
            index=self.index,
            seat_wind=self.seat_wind,
            hand=self.hand.copy(),
            melds=[m.copy() for m in self.melds],
            bonus_tiles=self.bonus_tiles.copy(),
            score=self.score,
            controller=self.controller,
        )

    def __repr__(self) -> str:
        return f"PlayerState({self.index}, {self.seat_wind.name}, hand={len(self.hand)}, melds={len(self.melds)})"

    def __str__(self) -> str:
        hand_str = str(self.hand)
        melds_str = " | ".join(str(m) for m in self.melds) if self.melds else "None"
        return f"{self.seat_wind.name.title()}: Hand[{hand_str}] Melds[{melds_str}] Score {self.score}"

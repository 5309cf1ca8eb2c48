"""
Random and Greedy Agents for Fan Mahjong

Simple baseline agents that pick among the legal moves of the seat to move.
"""

from copy import deepcopy
from typing import List, Optional

import numpy as np

from fan_mahjong.game import GameState
from fan_mahjong.move import Move


class RandomAgent:
    """
    Random agent that selects uniformly from valid moves.

    This serves as a baseline for comparison with search agents.
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the random agent.

        Args:
            seed: Random seed for reproducibility
        """
        self.rng = np.random.default_rng(seed)

    def act(self, state: GameState) -> Move:
        """
        Select a move for the seat to move.

        Args:
            state: Current game state

        Returns:
            A legal move (Pass when there is none)
        """
        moves = state.get_valid_moves()
        if not moves:
            return Move.pass_move()
        return moves[int(self.rng.integers(len(moves)))]

    def reset(self):
        """Reset the agent state (no-op for random agent)."""
        pass

    def copy(self) -> 'RandomAgent':
        new_agent = RandomAgent.__new__(RandomAgent)
        new_agent.rng = deepcopy(self.rng)
        return new_agent

    def __repr__(self) -> str:
        return "RandomAgent()"


class GreedyAgent:
    """
    Greedy agent that prioritizes claiming and winning.

    Priority: Mahjong > Kong > Pung > Chow (half the time) > Discard (smart) > Pass
    """

    def __init__(self, seed: Optional[int] = None, chow_probability: float = 0.5):
        """Initialize the greedy agent."""
        self.rng = np.random.default_rng(seed)
        self.chow_probability = chow_probability

    def act(self, state: GameState) -> Move:
        """Select a move using greedy heuristics."""
        moves = state.get_valid_moves()
        if not moves:
            return Move.pass_move()

        for move in moves:
            if move.is_mahjong:
                return move

        kongs = [m for m in moves if m.is_attempt and m.meld.is_kong]
        if kongs:
            return self._choice(kongs)

        pungs = [m for m in moves if m.is_attempt and m.meld.is_pung]
        if pungs:
            return self._choice(pungs)

        chows = [m for m in moves if m.is_attempt and m.meld.is_chow]
        if chows and self.rng.random() < self.chow_probability:
            return self._choice(chows)

        discards = [m for m in moves if m.is_discard]
        if discards:
            hand = state.players[state.sub_active_player].hand.to_count_array()
            return self._smart_discard(hand, discards)

        for move in moves:
            if move.is_pass:
                return move
        return self._choice(moves)

    def _choice(self, moves: List[Move]) -> Move:
        return moves[int(self.rng.integers(len(moves)))]

    def _smart_discard(self, hand: np.ndarray, discards: List[Move]) -> Move:
        """
        Choose which tile to discard using simple heuristics.

        Prefer discarding:
        1. Isolated honor tiles
        2. Isolated terminal tiles
        3. Tiles that don't contribute to sequences
        """
        scores = [(move, tile_value(hand, move.tile.tile_index)) for move in discards]

        # Sort by score (ascending) and pick from worst tiles
        scores.sort(key=lambda x: x[1])
        worst = [s[0] for s in scores[:3]]
        return self._choice(worst)

    def reset(self):
        """Reset agent state."""
        pass

    def copy(self) -> 'GreedyAgent':
        new_agent = GreedyAgent.__new__(GreedyAgent)
        new_agent.rng = deepcopy(self.rng)
        new_agent.chow_probability = self.chow_probability
        return new_agent

    def __repr__(self) -> str:
        return "GreedyAgent()"


def tile_value(hand: np.ndarray, tile_idx: int) -> float:
    """
    Calculate value of keeping a tile.
    Higher value = better to keep.
    """
    count = hand[tile_idx]
    value = count * 2.0  # Base value from count

    # Honor tiles (indices 27-33)
    if tile_idx >= 27:
        if count >= 2:
            value += 3.0  # Good for pung
        else:
            value -= 1.0  # Isolated honor
        return value

    # Numbered tiles - check for sequence potential
    suit_start = (tile_idx // 9) * 9
    num = tile_idx % 9  # 0-8 for values 1-9

    # Terminal tiles (1 or 9)
    if num == 0 or num == 8:
        value -= 0.5

    if num > 0 and hand[suit_start + num - 1] > 0:
        value += 1.5
    if num < 8 and hand[suit_start + num + 1] > 0:
        value += 1.5

    # Two-gap neighbors
    if num > 1 and hand[suit_start + num - 2] > 0:
        value += 0.5
    if num < 7 and hand[suit_start + num + 2] > 0:
        value += 0.5

    return value

"""
Search Agents for Fan Mahjong

Agents that look ahead on clones of the game state. The look-ahead never
crosses the end of the current hand.
"""

from copy import deepcopy
from dataclasses import replace
from typing import Callable, List, Optional

import numpy as np

from fan_mahjong.game import GameState
from fan_mahjong.move import Move
from .random_agent import tile_value
from .search import alpha_beta_search, uniform_monte_carlo_search

# Weight of one point of score against the hand-shape heuristic
SCORE_WEIGHT = 100


def evaluate_seat(state: GameState, seat: int) -> int:
    """
    Desirability of a state for one seat: score first, hand shape second.
    """
    player = state.players[seat]
    value = player.score * SCORE_WEIGHT

    if not state.hand_finished:
        hand = player.hand.to_count_array()
        shape = sum(tile_value(hand, idx) for idx in np.nonzero(hand[:34])[0])
        value += int(shape) + 6 * len(player.melds)
    return value


def hand_horizon(state: GameState) -> GameState:
    """A clone of the state that stops at the end of the current hand"""
    clone = state.copy()
    clone.rules = replace(clone.rules, auto_deal=False)
    return clone


def enumerate_moves(state: GameState) -> List[Move]:
    return state.get_valid_moves()


def apply_to_clone(state: GameState, move: Move) -> GameState:
    """Apply a move to a clone, leaving `state` as it was"""
    clone = state.copy()
    clone.apply_move(move)
    return clone


class AlphaBetaAgent:
    """
    Minimax agent with alpha-beta pruning.

    Maximises for the seat it is asked to move for and minimises on every
    other seat's decisions.
    """

    def __init__(self, max_depth: int = 2, seed: Optional[int] = None):
        self.max_depth = max_depth
        self.rng = np.random.default_rng(seed)

    def act(self, state: GameState) -> Move:
        seat = state.sub_active_player
        root = hand_horizon(state)
        move = alpha_beta_search(
            root,
            self.max_depth,
            evaluator=lambda s: evaluate_seat(s, seat),
            enumerator=enumerate_moves,
            applier=apply_to_clone,
            maximising=lambda init, s: s.sub_active_player == init.sub_active_player,
            rng=self.rng,
        )
        return move if move is not None else Move.pass_move()

    def copy(self) -> 'AlphaBetaAgent':
        new_agent = AlphaBetaAgent.__new__(AlphaBetaAgent)
        new_agent.max_depth = self.max_depth
        new_agent.rng = deepcopy(self.rng)
        return new_agent

    def __repr__(self) -> str:
        return f"AlphaBetaAgent(depth={self.max_depth})"


class MonteCarloAgent:
    """
    Uniform Monte Carlo agent: random playouts to the end of the hand.
    """

    def __init__(self, samples: int = 2, max_rollout_depth: Optional[int] = 60,
                 seed: Optional[int] = None):
        self.samples = samples
        self.max_rollout_depth = max_rollout_depth
        self.rng = np.random.default_rng(seed)

    def act(self, state: GameState) -> Move:
        seat = state.sub_active_player
        root = hand_horizon(state)
        cloner: Callable[[GameState], GameState] = lambda s: s.copy()
        move = uniform_monte_carlo_search(
            root,
            self.samples,
            cloner=cloner,
            enumerator=enumerate_moves,
            applier=apply_to_clone,
            evaluator=lambda s: evaluate_seat(s, seat),
            rng=self.rng,
            max_rollout_depth=self.max_rollout_depth,
        )
        return move if move is not None else Move.pass_move()

    def copy(self) -> 'MonteCarloAgent':
        new_agent = MonteCarloAgent.__new__(MonteCarloAgent)
        new_agent.samples = self.samples
        new_agent.max_rollout_depth = self.max_rollout_depth
        new_agent.rng = deepcopy(self.rng)
        return new_agent

    def __repr__(self) -> str:
        return f"MonteCarloAgent(samples={self.samples})"

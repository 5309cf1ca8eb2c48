"""
Fan Mahjong Gymnasium Environment

A Gymnasium-compatible environment for training RL agents to play Fan Mahjong.
"""

from dataclasses import replace
from typing import Any, Dict, List, Optional, Tuple

import gymnasium as gym
from gymnasium import spaces
import numpy as np

from fan_mahjong.tiles import TileSet
from fan_mahjong.game import GameState
from fan_mahjong.move import Move
from fan_mahjong.rules import RuleSet, SINGLE_HAND_RULES
from fan_mahjong.scoring import LIMIT_POINTS
from agents import make_agent


class FanMahjongEnv(gym.Env):
    """
    Fan Mahjong Environment for Reinforcement Learning.

    The agent controls one seat; the other three are played by agents.
    An episode is a single hand.

    Observation Space:
        A dictionary containing:
        - hand: (34,) int8 - Count of each tile type in hand
        - melds: (4, 34) int8 - Tiles in fixed melds for each seat
        - discards: (34,) int8 - Discard pile counts
        - available_tile: (34,) int8 - One-hot encoding of the tile up for claim
        - valid_actions: (138,) int8 - Binary mask of valid actions
        - game_info: (8,) float32 - [active_player, sub_active_player, prevailing_wind,
                                     seat_wind, wall_remaining, hand_number,
                                     is_my_turn, can_win]

    Action Space:
        Discrete(138):
        - 0-33: Discard tile type 0-33
        - 34-67: Chow whose lowest tile is type 0-33
        - 68-101: Pung tile 0-33
        - 102-135: Kong tile 0-33 (claimed, concealed or promoted)
        - 136: Declare Mahjong
        - 137: Pass
    """

    metadata = {"render_modes": ["human", "ansi"], "render_fps": 1}

    # Action space constants
    NUM_TILE_TYPES = TileSet.NUM_PLAYABLE_TYPES
    ACTION_DISCARD_START = 0
    ACTION_CHOW_START = 34
    ACTION_PUNG_START = 68
    ACTION_KONG_START = 102
    ACTION_MAHJONG = 136
    ACTION_PASS = 137
    NUM_ACTIONS = 138

    def __init__(
        self,
        player_idx: int = 0,
        opponent_policy: str = "random",
        opponents: Optional[List[Any]] = None,
        rules: RuleSet = SINGLE_HAND_RULES,
        seed: Optional[int] = None,
        render_mode: Optional[str] = None,
    ):
        """
        Initialize the Fan Mahjong environment.

        Args:
            player_idx: Index of the agent's seat (0-3)
            opponent_policy: Agent name for opponents ("random", "greedy", ...)
            opponents: Explicit opponent agents, one per other seat
            rules: Table settings; hands never deal automatically
            seed: Random seed for reproducibility
            render_mode: Rendering mode ("human" or "ansi")
        """
        super().__init__()

        if not 0 <= player_idx < GameState.NUM_PLAYERS:
            raise ValueError(f"player_idx must be 0-{GameState.NUM_PLAYERS - 1}, got {player_idx}")

        self.player_idx = player_idx
        self.render_mode = render_mode
        self.rules = replace(rules, auto_deal=False)
        self._seed = seed

        if opponents is None:
            opponents = [make_agent(opponent_policy, seed=None if seed is None else seed + i)
                         for i in range(GameState.NUM_PLAYERS - 1)]
        if len(opponents) != GameState.NUM_PLAYERS - 1:
            raise ValueError(f"Need {GameState.NUM_PLAYERS - 1} opponents, got {len(opponents)}")
        self.opponents = {}
        others = [i for i in range(GameState.NUM_PLAYERS) if i != player_idx]
        for seat, agent in zip(others, opponents):
            self.opponents[seat] = agent

        self.game: Optional[GameState] = None

        # Define observation space
        self.observation_space = spaces.Dict({
            "hand": spaces.Box(low=0, high=4, shape=(34,), dtype=np.int8),
            "melds": spaces.Box(low=0, high=4, shape=(4, 34), dtype=np.int8),
            "discards": spaces.Box(low=0, high=4, shape=(34,), dtype=np.int8),
            "available_tile": spaces.Box(low=0, high=1, shape=(34,), dtype=np.int8),
            "valid_actions": spaces.Box(low=0, high=1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
            "game_info": spaces.Box(low=-1, high=200, shape=(8,), dtype=np.float32),
        })

        # Define action space
        self.action_space = spaces.Discrete(self.NUM_ACTIONS)

        self._episode_reward = 0.0
        self._episode_length = 0
        self._start_score = 0

    def reset(
        self,
        seed: Optional[int] = None,
        options: Optional[Dict] = None
    ) -> Tuple[Dict[str, np.ndarray], Dict]:
        """
        Reset the environment to start a new hand.

        Args:
            seed: Random seed
            options: Additional options (unused)

        Returns:
            Tuple of (observation, info)
        """
        if seed is None and self._seed is not None:
            seed, self._seed = self._seed, None
        super().reset(seed=seed)

        game_seed = int(self.np_random.integers(2 ** 31))
        self.game = GameState(self.rules, seed=game_seed)
        self._start_score = self.game.players[self.player_idx].score

        self._episode_reward = 0.0
        self._episode_length = 0

        self._run_opponents_until_agent_turn()

        return self._get_observation(), self._get_info()

    def step(self, action: int) -> Tuple[Dict[str, np.ndarray], float, bool, bool, Dict]:
        """
        Take a step in the environment.

        Args:
            action: Action index from action space

        Returns:
            Tuple of (observation, reward, terminated, truncated, info)
        """
        if self.game is None:
            raise RuntimeError("Call reset() before step()")
        self._episode_length += 1

        valid_moves = self._valid_moves_by_action()
        reward = 0.0
        move = valid_moves.get(int(action))
        if move is None:
            # Invalid action - apply penalty and play a random valid move
            reward = -1.0
            if valid_moves:
                choices = list(valid_moves.values())
                move = choices[int(self.np_random.integers(len(choices)))]

        if move is not None:
            self.game.apply_move(move)
            self._run_opponents_until_agent_turn()

        terminated = self.game.hand_finished or self.game.game_finished
        truncated = self._episode_length > 1000  # Safety limit

        if terminated:
            delta = self.game.players[self.player_idx].score - self._start_score
            reward += delta / LIMIT_POINTS

        self._episode_reward += reward

        obs = self._get_observation()
        info = self._get_info()
        if terminated or truncated:
            result = self.game.last_result
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "winner": result.winner if result is not None else None,
            }

        return obs, reward, terminated, truncated, info

    # ========== Action encoding ==========

    def move_to_action(self, move: Move) -> Optional[int]:
        """Convert a Move to its action index."""
        if move.is_mahjong:
            return self.ACTION_MAHJONG
        if move.is_pass:
            return self.ACTION_PASS
        if move.is_discard:
            return self.ACTION_DISCARD_START + move.tile.tile_index
        if move.is_attempt:
            meld = move.meld
            if meld.is_chow:
                return self.ACTION_CHOW_START + meld.tiles[0].tile_index
            if meld.is_pung:
                return self.ACTION_PUNG_START + meld.base_tile.tile_index
            if meld.is_kong:
                return self.ACTION_KONG_START + meld.base_tile.tile_index
        return None

    def _valid_moves_by_action(self) -> Dict[int, Move]:
        """Legal moves of the agent's seat, keyed by action index."""
        if self.game.hand_finished or self.game.sub_active_player != self.player_idx:
            return {}
        moves = {}
        for move in self.game.get_valid_moves():
            idx = self.move_to_action(move)
            if idx is not None and idx not in moves:
                moves[idx] = move
        return moves

    # ========== Opponents ==========

    def _run_opponents_until_agent_turn(self) -> None:
        """
        Play opponent seats until the agent has a real decision or the hand ends.
        The agent passes automatically when Pass is its only legal move.
        """
        game = self.game
        while not game.hand_finished and not game.game_finished:
            seat = game.sub_active_player
            if seat == self.player_idx:
                moves = game.get_valid_moves()
                if len(moves) == 1 and moves[0].is_pass:
                    game.apply_move(moves[0])
                    continue
                return
            move = self.opponents[seat].act(game)
            if not game.apply_move(move):
                game.apply_move(game.get_valid_moves()[0])

    # ========== Observation ==========

    def _get_observation(self) -> Dict[str, np.ndarray]:
        """Encode the engine's view of the agent's seat."""
        view = self.game.get_observation(self.player_idx)

        melds = np.zeros((4, 34), dtype=np.int8)
        for seat, seat_melds in enumerate(view["melds"]):
            for meld in seat_melds:
                for tile in meld.tiles:
                    melds[seat, tile.tile_index] += 1

        available = np.zeros(34, dtype=np.int8)
        if view["available_tile"] is not None:
            available[view["available_tile"].tile_index] = 1

        valid_actions = np.zeros(self.NUM_ACTIONS, dtype=np.int8)
        for move in view["valid_moves"]:
            idx = self.move_to_action(move)
            if idx is not None:
                valid_actions[idx] = 1

        game_info = np.array([
            view["active_player"],
            view["sub_active_player"],
            view["prevailing_wind"],
            view["seat_wind"],
            view["wall_remaining"],
            self.game.hand_number,
            1 if view["active_player"] == self.player_idx else 0,
            valid_actions[self.ACTION_MAHJONG],
        ], dtype=np.float32)

        return {
            "hand": view["hand"][:34],
            "melds": melds,
            "discards": view["discards"][:34],
            "available_tile": available,
            "valid_actions": valid_actions,
            "game_info": game_info,
        }

    def _get_info(self) -> Dict[str, Any]:
        """Get additional info about the environment state."""
        game = self.game
        return {
            "active_player": game.active_player,
            "sub_active_player": game.sub_active_player,
            "wall_remaining": game.wall.remaining,
            "scores": [p.score for p in game.players],
        }

    # ========== Rendering ==========

    def render(self) -> Optional[str]:
        """Render the environment."""
        if self.render_mode == "human":
            print(self._render_ansi())
        elif self.render_mode == "ansi":
            return self._render_ansi()
        return None

    def _render_ansi(self) -> str:
        """Render as text."""
        game = self.game
        lines = [
            f"=== Fan Mahjong - Hand {game.hand_number} ({game.prevailing_wind.name} round) ===",
            f"Active: {game.active_player}  To move: {game.sub_active_player}",
            f"Wall Remaining: {game.wall.remaining}",
        ]
        if game.available_tile is not None:
            lines.append(f"Tile up for claim: {game.available_tile}")

        lines.append("")
        for p in game.players:
            marker = "*" if p.index == self.player_idx else " "
            lines.append(f"{marker} {p}")

        lines.append("")
        lines.append("--- Valid Actions ---")
        valid = list(self._valid_moves_by_action().values())
        for move in valid[:10]:
            lines.append(f"  {move}")
        if len(valid) > 10:
            lines.append(f"  ... and {len(valid) - 10} more")

        return "\n".join(lines)

    def close(self):
        """Clean up resources."""
        pass


def register_envs():
    """Register Fan Mahjong environments with Gymnasium."""
    gym.register(
        id="FanMahjong-v0",
        entry_point="envs.mahjong_env:FanMahjongEnv",
        max_episode_steps=1000,
    )

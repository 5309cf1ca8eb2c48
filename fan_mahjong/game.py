"""
Fan Mahjong Game Engine

The trick state machine for four-player Fan Mahjong.

Every trick collects one move from each seat, starting with the active
player (the seat that must discard or act). Moves are buffered until all
four seats have spoken and are then arbitrated together:
- Mahjong beats Pung/Kong, which beats Chow
- Ties go to the seat earliest in turn order after the active player
- A Kong can be robbed by a simultaneous Mahjong on the same tile
"""

import logging
from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .tiles import Tile, TileSet, WindType
from .meld import Meld
from .move import Move
from .player import PlayerState
from .wall import Wall
from .rules import RuleSet, DEFAULT_RULES
from .completion import has_mahjong, best_completion
from .scoring import (
    calculate_fan,
    fan_to_base_points,
    settle_payments,
    NOT_COMPLETE,
)

logger = logging.getLogger(__name__)


@dataclass
class HandResult:
    """
    Outcome of a finished hand.

    Attributes:
        winner: Winning seat, or None for a goulash
        discarder: Seat that supplied the winning tile, if any
        self_pick: Whether the winner drew the winning tile
        completion: Winning melds
        fan: Fan of the winning hand
        base_points: Base points for that fan
        payments: Score change per seat
        flags: Win conditions passed to the fan count
    """
    winner: Optional[int] = None
    discarder: Optional[int] = None
    self_pick: bool = False
    completion: List[Meld] = field(default_factory=list)
    fan: int = NOT_COMPLETE
    base_points: int = 0
    payments: List[int] = field(default_factory=lambda: [0, 0, 0, 0])
    flags: Dict[str, bool] = field(default_factory=dict)

    @property
    def goulash(self) -> bool:
        return self.winner is None


class GameState:
    """
    Fan Mahjong game state.

    Owns the four seats, the wall, the discard pile and the random
    generator that shuffles every wall of the game.
    """

    NUM_PLAYERS = 4

    def __init__(self, rules: RuleSet = DEFAULT_RULES,
                 players: Optional[List[PlayerState]] = None,
                 seed: Optional[int] = None):
        """
        Initialize a new game and deal the first hand.

        Args:
            rules: Table settings
            players: Seats to play with; four fresh seats by default
            seed: Random seed; falls back to rules.seed
        """
        self.rules = rules
        self.rng = np.random.default_rng(seed if seed is not None else rules.seed)

        if players is None:
            players = [PlayerState(i, WindType(i), score=rules.starting_score)
                       for i in range(self.NUM_PLAYERS)]
        if len(players) != self.NUM_PLAYERS:
            raise ValueError(f"Fan Mahjong needs {self.NUM_PLAYERS} players, got {len(players)}")
        self.players = players

        self.hand_number = 0
        self.bonus_hand = 0
        self.game_finished = False
        self.last_result: Optional[HandResult] = None

        self.init_hand()

    # ========== Hand setup ==========

    def init_hand(self) -> None:
        """Shuffle a new wall, deal, and let East draw the fourteenth tile"""
        if self.game_finished:
            raise RuntimeError("Game is already over")

        self.wall = Wall(rng=self.rng, bonus_tiles=self.rules.bonus_tiles)
        self.discard_pile = TileSet()
        for player in self.players:
            player.reset()

        self.hand_finished = False
        self.buffer: List[Optional[Move]] = [None] * self.NUM_PLAYERS
        self.available_tile: Optional[Tile] = None
        self.replacement_draws = 0
        self.heavenly = True
        self.earthly = True

        east = self.east_seat
        self.active_player = east
        self.sub_active_player = east

        hands = self.wall.deal_hands(self.NUM_PLAYERS)
        for seat, tiles in enumerate(hands):
            self.players[seat].hand.draw(tiles)

        for offset in range(self.NUM_PLAYERS):
            if not self._replace_bonus_tiles((east + offset) % self.NUM_PLAYERS):
                return

        if self._draw(east):
            logger.debug(f"Hand {self.hand_number} dealt, East is seat {east}, "
                         f"prevailing wind {self.prevailing_wind.name}")

    def _replace_bonus_tiles(self, seat: int) -> bool:
        """Set aside bonus tiles dealt to a seat. False if the wall ran out."""
        player = self.players[seat]
        for tile in [t for t in player.hand if t.is_bonus]:
            player.hand.remove(tile)
            player.bonus_tiles.add(tile)
            if not self._draw(seat, replacement=True):
                return False
        return True

    def _draw(self, seat: int, replacement: bool = False) -> bool:
        """
        Draw a tile for a seat, setting aside any bonus tiles drawn.

        Returns:
            False if the wall ran out; the hand has then ended as a goulash
        """
        player = self.players[seat]
        tile = self.wall.draw_replacement() if replacement else self.wall.draw()
        while tile is not None and tile.is_bonus:
            player.bonus_tiles.add(tile)
            tile = self.wall.draw_replacement()

        if tile is None:
            self._end_hand_goulash()
            return False

        player.add_tile(tile)
        return True

    # ========== Read-only state ==========

    @property
    def east_seat(self) -> int:
        for player in self.players:
            if player.seat_wind == WindType.EAST:
                return player.index
        raise RuntimeError("No seat holds the East wind")

    @property
    def prevailing_wind(self) -> WindType:
        return WindType((self.hand_number // self.rules.hands_per_round) % 4)

    @property
    def kong_pending(self) -> bool:
        """The active player's buffered move is a kong"""
        turn_move = self.buffer[self.active_player]
        return turn_move is not None and turn_move.is_attempt

    def next_seat(self, seat: int) -> int:
        return (seat + 1) % self.NUM_PLAYERS

    def _turn_order(self) -> List[int]:
        """Other seats, earliest in turn order after the active player first"""
        return [(self.active_player + k) % self.NUM_PLAYERS for k in range(1, self.NUM_PLAYERS)]

    # ========== Validation ==========

    def is_valid(self, move: Move) -> bool:
        """Check whether the seat to move (SubActivePlayer) may submit `move`"""
        if self.game_finished or self.hand_finished:
            return False
        seat = self.sub_active_player
        if not 0 <= seat < self.NUM_PLAYERS:
            return False

        if seat == self.active_player:
            return self._is_valid_turn_move(seat, move)
        return self._is_valid_reaction(seat, move)

    def _is_valid_turn_move(self, seat: int, move: Move) -> bool:
        player = self.players[seat]

        if move.is_discard:
            return (move.tile is not None and not move.tile.is_bonus
                    and player.hand.contains(move.tile))

        if move.is_self_pick:
            return self._can_win(seat, None, self_pick=True)

        if move.is_attempt:
            meld = move.meld
            if not meld.is_kong or move.tile != meld.base_tile:
                return False
            return player.copy().declare_kong(meld.base_tile)

        # Pass, or Mahjong on a tile nobody offered
        return False

    def _is_valid_reaction(self, seat: int, move: Move) -> bool:
        if move.is_pass:
            return True

        tile = self.available_tile
        if tile is None or move.is_discard:
            return False
        if move.tile is None or move.tile != tile:
            return False

        if move.is_attempt:
            meld = move.meld
            if not meld.valid:
                return False
            if not move.mahjong:
                if self.kong_pending or not meld.is_group:
                    return False
                if meld.is_chow and seat != self.next_seat(self.active_player):
                    return False
                return self.players[seat].copy().form_meld(meld, claimed=tile)
            if meld.is_group and not self.players[seat].copy().form_meld(meld, claimed=tile):
                return False

        return self._can_win(seat, tile, self_pick=False, robbed_kong=self.kong_pending)

    def _win_flags(self, seat: int, self_pick: bool, robbed_kong: bool = False) -> Dict[str, bool]:
        """Win conditions for a seat winning now"""
        return {
            "last_tile": self.wall.is_empty,
            "won_on_replacement": self_pick and self.replacement_draws >= 1,
            "won_on_double_replacement": self_pick and self.replacement_draws >= 2,
            "robbed_kong": robbed_kong,
            "heavenly_hand": self_pick and self.heavenly and seat == self.east_seat,
            "earthly_hand": not self_pick and not robbed_kong and self.earthly,
        }

    def _can_win(self, seat: int, tile: Optional[Tile], self_pick: bool,
                 robbed_kong: bool = False) -> bool:
        player = self.players[seat]
        if self.rules.min_fan <= 0:
            return has_mahjong(player.hand, player.melds, tile)

        flags = self._win_flags(seat, self_pick, robbed_kong)
        completion = best_completion(player.hand, player.melds, player.seat_wind,
                                     self.prevailing_wind, self_pick, tile=tile, **flags)
        if completion is None:
            return False
        fan = calculate_fan(completion, player.seat_wind, self.prevailing_wind,
                            self_pick=self_pick, **flags)
        return fan >= self.rules.min_fan

    # ========== Applying moves ==========

    def apply_move(self, move: Move) -> bool:
        """
        Submit the move of the seat to move.

        Returns:
            False if the move is illegal (nothing changes), True otherwise
        """
        if not self.is_valid(move):
            logger.debug(f"Rejected move from seat {self.sub_active_player}: {move}")
            return False

        seat = self.sub_active_player
        self.buffer[seat] = move.copy()
        if seat == self.active_player and (move.is_discard or move.is_attempt):
            self.available_tile = self.players[seat].held_instance(move.tile)
        logger.debug(f"Seat {seat}: {move}")

        self.sub_active_player = self.next_seat(seat)
        if any(m is None for m in self.buffer):
            return True

        self._resolve_trick()
        return True

    def _reset_trick(self, active: int) -> None:
        self.buffer = [None] * self.NUM_PLAYERS
        self.available_tile = None
        self.active_player = active
        self.sub_active_player = active

    def _first_claimant(self, predicate: Callable[[Move], bool]) -> Optional[int]:
        for seat in self._turn_order():
            if predicate(self.buffer[seat]):
                return seat
        return None

    def _resolve_trick(self) -> None:
        active = self.active_player
        turn_move = self.buffer[active]

        if not (turn_move.is_self_pick and active == self.east_seat):
            self.heavenly = False

        if turn_move.is_discard:
            self._resolve_discard(active, turn_move)
        else:
            self._resolve_turn_action(active, turn_move)

    def _resolve_turn_action(self, active: int, turn_move: Move) -> None:
        """Self-pick Mahjong or a kong by the active player"""
        player = self.players[active]

        if turn_move.is_self_pick:
            self._end_hand_win(active, self_pick=True)
            return

        kong_tile = self.available_tile
        robber = self._first_claimant(lambda m: m.is_mahjong)
        if robber is not None:
            robbed = player.hand.play(kong_tile)
            logger.debug(f"Seat {robber} robs the kong of {robbed} from seat {active}")
            self._end_hand_win(robber, self_pick=False, tile=robbed,
                               discarder=active, robbed_kong=True)
            return

        player.declare_kong(kong_tile)
        self.replacement_draws += 1
        self._reset_trick(active)
        if not self._draw(active, replacement=True):
            return

        if turn_move.mahjong and self._can_win(active, None, self_pick=True):
            self._end_hand_win(active, self_pick=True)

    def _resolve_discard(self, active: int, turn_move: Move) -> None:
        tile = self.players[active].hand.play(self.available_tile)

        winner = self._first_claimant(lambda m: m.is_mahjong)
        if winner is not None:
            self._end_hand_win(winner, self_pick=False, tile=tile, discarder=active)
            return
        self.earthly = False

        claimer = self._first_claimant(lambda m: m.is_attempt and m.meld.is_pung_or_kong)
        if claimer is None:
            chow = self.buffer[self.next_seat(active)]
            if chow.is_attempt and chow.meld.is_chow:
                claimer = self.next_seat(active)

        if claimer is not None:
            meld = self.buffer[claimer].meld
            self.players[claimer].form_meld(meld, claimed=tile)
            logger.debug(f"Seat {claimer} claims {tile} from seat {active}")
            self._reset_trick(claimer)
            if meld.is_kong:
                self.replacement_draws = 1
                self._draw(claimer, replacement=True)
            else:
                self.replacement_draws = 0
            return

        self.discard_pile.add(tile)
        self.replacement_draws = 0
        self._reset_trick(self.next_seat(active))
        self._draw(self.active_player)

    # ========== Hand end ==========

    def _end_hand_win(self, winner: int, self_pick: bool, tile: Optional[Tile] = None,
                      discarder: Optional[int] = None, robbed_kong: bool = False) -> None:
        player = self.players[winner]
        flags = self._win_flags(winner, self_pick, robbed_kong)
        completion = best_completion(player.hand, player.melds, player.seat_wind,
                                     self.prevailing_wind, self_pick, tile=tile, **flags)
        if tile is not None:
            player.add_tile(tile)

        fan = NOT_COMPLETE
        if completion is not None:
            fan = calculate_fan(completion, player.seat_wind, self.prevailing_wind,
                                self_pick=self_pick, **flags)
        base_points = fan_to_base_points(fan)

        east = self.east_seat
        payments = settle_payments(base_points, winner, east, self_pick, discarder,
                                   self.NUM_PLAYERS)
        for seat, delta in enumerate(payments):
            self.players[seat].score += delta

        self.last_result = HandResult(
            winner=winner,
            discarder=discarder,
            self_pick=self_pick,
            completion=completion or [],
            fan=fan,
            base_points=base_points,
            payments=payments,
            flags=flags,
        )
        logger.info(f"Hand {self.hand_number}: seat {winner} wins with {fan} fan "
                    f"({base_points} base points), payments {payments}")
        self._finish_hand(repeat_deal=winner == east)

    def _end_hand_goulash(self) -> None:
        self.last_result = HandResult(payments=[0] * self.NUM_PLAYERS)
        logger.info(f"Hand {self.hand_number}: goulash, wall exhausted")
        self._finish_hand(repeat_deal=True)

    def _finish_hand(self, repeat_deal: bool) -> None:
        """Update the hand counters and start the next hand or end the game"""
        self.hand_finished = True
        self.buffer = [None] * self.NUM_PLAYERS
        self.available_tile = None

        if repeat_deal and self.bonus_hand < self.rules.max_bonus_hands:
            self.bonus_hand += 1
        else:
            for player in self.players:
                player.rotate_wind()
            self.hand_number += 1
            self.bonus_hand = 0

        if self.hand_number >= self.rules.num_hands:
            self.game_finished = True
            logger.info(f"Game over after {self.hand_number} hands, "
                        f"scores {[p.score for p in self.players]}")
        elif self.rules.auto_deal:
            self.init_hand()

    # ========== Action enumeration ==========

    def get_valid_moves(self) -> List[Move]:
        """
        Legal moves for the seat to move. Empty when the game or hand is over.
        """
        if self.game_finished or self.hand_finished:
            return []

        seat = self.sub_active_player
        player = self.players[seat]
        candidates = []

        if seat == self.active_player:
            for tile in player.hand.get_unique_tiles():
                candidates.append(Move.discard_tile(tile))
            for tile in player.kong_candidates():
                candidates.append(Move.attempt(Meld([tile] * 4), tile))
            candidates.append(Move.declare_mahjong())
        else:
            candidates.append(Move.pass_move())
            tile = self.available_tile
            if tile is not None:
                candidates.append(Move.declare_mahjong(tile))
                if player.can_pung(tile):
                    candidates.append(Move.attempt(Meld([tile] * 3), tile))
                if player.can_kong(tile):
                    candidates.append(Move.attempt(Meld([tile] * 4), tile))
                if seat == self.next_seat(self.active_player):
                    for low, high in player.can_chow(tile):
                        candidates.append(Move.attempt(Meld([low, high, tile]), tile))

        return [m for m in candidates if self.is_valid(m)]

    def get_observation(self, seat: int) -> Dict[str, Any]:
        """
        Get observation for a seat (what they can see).

        Args:
            seat: Index of the seat getting the observation

        Returns:
            Dictionary containing all visible information
        """
        player = self.players[seat]
        return {
            "hand": player.hand.to_count_array(),
            "melds": [list(p.melds) for p in self.players],
            "bonus_tiles": [len(p.bonus_tiles) for p in self.players],
            "discards": self.discard_pile.to_count_array(),
            "available_tile": self.available_tile,
            "active_player": self.active_player,
            "sub_active_player": self.sub_active_player,
            "prevailing_wind": self.prevailing_wind,
            "seat_wind": player.seat_wind,
            "scores": [p.score for p in self.players],
            "wall_remaining": self.wall.remaining,
            "valid_moves": self.get_valid_moves() if seat == self.sub_active_player else [],
        }

    # ========== Cloning ==========

    def copy(self) -> 'GameState':
        """Create a deep copy of the game, random generator included"""
        new_game = GameState.__new__(GameState)
        new_game.rules = replace(self.rules)
        new_game.rng = deepcopy(self.rng)
        new_game.players = [p.copy() for p in self.players]
        new_game.wall = self.wall.copy(rng=new_game.rng)
        new_game.discard_pile = self.discard_pile.copy()
        new_game.active_player = self.active_player
        new_game.sub_active_player = self.sub_active_player
        new_game.buffer = [m.copy() if m is not None else None for m in self.buffer]
        new_game.available_tile = None
        if self.available_tile is not None:
            new_game.available_tile = new_game.players[self.active_player].held_instance(
                self.available_tile)
        new_game.hand_number = self.hand_number
        new_game.bonus_hand = self.bonus_hand
        new_game.heavenly = self.heavenly
        new_game.earthly = self.earthly
        new_game.replacement_draws = self.replacement_draws
        new_game.hand_finished = self.hand_finished
        new_game.game_finished = self.game_finished
        new_game.last_result = deepcopy(self.last_result)
        return new_game

    def __eq__(self, other) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return (
            self.rules == other.rules
            and self.rng.bit_generator.state == other.rng.bit_generator.state
            and self.players == other.players
            and self.wall == other.wall
            and self.discard_pile == other.discard_pile
            and self.active_player == other.active_player
            and self.sub_active_player == other.sub_active_player
            and self.buffer == other.buffer
            and self.available_tile == other.available_tile
            and self.hand_number == other.hand_number
            and self.bonus_hand == other.bonus_hand
            and self.heavenly == other.heavenly
            and self.earthly == other.earthly
            and self.replacement_draws == other.replacement_draws
            and self.hand_finished == other.hand_finished
            and self.game_finished == other.game_finished
            and self.last_result == other.last_result
        )

    def __repr__(self) -> str:
        return (f"GameState(hand={self.hand_number}, active={self.active_player}, "
                f"sub_active={self.sub_active_player}, wall={self.wall.remaining})")

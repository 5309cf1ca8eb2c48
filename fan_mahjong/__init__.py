"""
Fan Mahjong Game Engine
Four-player Mahjong scored with a simplified fan table
"""

from .tiles import Tile, TileSuit, SuitColor, WindType, DragonType, TileSet, suit_color
from .wall import Wall
from .meld import Meld, MeldType, classify
from .completion import has_mahjong, all_completions, best_completion
from .scoring import (
    FanScorer,
    calculate_fan,
    is_complete_hand,
    fan_to_base_points,
    settle_payments,
    LIMIT,
)
from .move import Move
from .player import PlayerState, Controller, ControllerKind
from .rules import RuleSet, DEFAULT_RULES, QUICK_RULES, SINGLE_HAND_RULES, get_rules
from .game import GameState, HandResult

__version__ = "0.1.0"
__all__ = [
    "Tile",
    "TileSuit",
    "SuitColor",
    "WindType",
    "DragonType",
    "TileSet",
    "suit_color",
    "Wall",
    "Meld",
    "MeldType",
    "classify",
    "has_mahjong",
    "all_completions",
    "best_completion",
    "FanScorer",
    "calculate_fan",
    "is_complete_hand",
    "fan_to_base_points",
    "settle_payments",
    "LIMIT",
    "Move",
    "PlayerState",
    "Controller",
    "ControllerKind",
    "RuleSet",
    "DEFAULT_RULES",
    "QUICK_RULES",
    "SINGLE_HAND_RULES",
    "get_rules",
    "GameState",
    "HandResult",
]

"""
Fan Mahjong Rule Sets

Table settings that vary between games:
- Length of the game and of each prevailing-wind round
- How long East may keep the deal
- Minimum fan to win, bonus tiles, starting score
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class RuleSet:
    """
    Rule configuration for a game.

    The fan table itself is fixed; these are the settings around it.
    """

    name: str = "Default"

    # Game ends once this many hands have been completed without an East repeat
    num_hands: int = 16
    # Hands per prevailing wind
    hands_per_round: int = 4

    # East repeats the deal on a win or a goulash, at most this many times in a row
    max_bonus_hands: int = 8

    starting_score: int = 0

    # Minimum fan needed to declare Mahjong
    min_fan: int = 0

    # Flowers and seasons in the wall
    bonus_tiles: bool = True

    # Deal the next hand as soon as one ends
    auto_deal: bool = True

    # Seed for the game's random generator; None draws fresh entropy
    seed: Optional[int] = None

    def __repr__(self) -> str:
        return f"RuleSet({self.name})"


# Four prevailing-wind rounds of four hands
DEFAULT_RULES = RuleSet(name="Default")

# A single East round
QUICK_RULES = RuleSet(
    name="Quick",
    num_hands=4,
    hands_per_round=4,
    max_bonus_hands=2,
)

# One hand, left finished for inspection
SINGLE_HAND_RULES = RuleSet(
    name="Single",
    num_hands=1,
    hands_per_round=1,
    max_bonus_hands=0,
    auto_deal=False,
)


def get_rules(name: str) -> RuleSet:
    """Get rule set by name"""
    rules_map = {
        "default": DEFAULT_RULES,
        "quick": QUICK_RULES,
        "single": SINGLE_HAND_RULES,
    }
    name = name.lower()
    if name not in rules_map:
        raise ValueError(f"Unknown rule set: {name}. Available: {list(rules_map.keys())}")
    return rules_map[name]

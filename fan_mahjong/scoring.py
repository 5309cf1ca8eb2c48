"""
Fan Mahjong Scoring System

Counts fan for a complete hand under a simplified house fan table and
converts fan into base points and payments.

A hand is scored in three layers:
- Limit patterns: any match makes the hand a limit hand.
- Shape patterns: mutually exclusive, the first match in table order counts.
- Bonus patterns: every match adds its points independently.
"""

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple, Union

from .tiles import Tile, TileSuit
from .meld import Meld

# Fan value of a limit hand. Compares above any counted fan.
LIMIT = 2 ** 31 - 1
# Fan value of a hand that is not complete
NOT_COMPLETE = -1

LIMIT_POINTS = 128
BASE_POINTS = {3: 8, 4: 16, 5: 24, 6: 32, 7: 48, 8: 64, 9: 96}


def is_complete_hand(melds: List[Meld]) -> bool:
    """
    A complete hand is a single whole-hand special meld, or four
    chow/pung/kong groups plus exactly one eye.
    """
    if len(melds) == 1:
        return melds[0].is_special
    if len(melds) != 5:
        return False
    eyes = sum(1 for m in melds if m.is_eye)
    groups = sum(1 for m in melds if m.is_group)
    return eyes == 1 and groups == 4


def fan_to_base_points(fan: int) -> int:
    """Base points for a fan count; limit hands and 10+ fan pay the maximum"""
    if fan >= 10:
        return LIMIT_POINTS
    return BASE_POINTS.get(fan, 0)


def settle_payments(
    base_points: int,
    winner: int,
    east_seat: int,
    self_pick: bool,
    discarder: Optional[int] = None,
    num_players: int = 4,
) -> List[int]:
    """
    Per-seat score changes for a won hand.

    Every loser pays the base points, doubled once for each of: a self-drawn
    win, being the discarder, the winner being East, the loser being East.

    Returns:
        List of deltas indexed by seat; sums to zero
    """
    deltas = [0] * num_players
    for seat in range(num_players):
        if seat == winner:
            continue
        amount = base_points
        if self_pick:
            amount *= 2
        if discarder is not None and seat == discarder:
            amount *= 2
        if winner == east_seat:
            amount *= 2
        if seat == east_seat:
            amount *= 2
        deltas[seat] -= amount
        deltas[winner] += amount
    return deltas


@dataclass
class FanContext:
    """Context information needed for counting fan"""
    melds: List[Meld]               # Complete hand, fixed and concealed melds together
    seat_wind: int                  # Winner's seat wind (WindType)
    prevailing_wind: int            # Prevailing wind (WindType)
    self_pick: bool = False         # Winning tile drawn by the winner
    last_tile: bool = False         # Won with the last tile of the wall
    won_on_replacement: bool = False         # Won on a kong replacement tile
    won_on_double_replacement: bool = False  # Won on a replacement after two kongs in a row
    robbed_kong: bool = False       # Won on a tile another player tried to kong
    heavenly_hand: bool = False     # East won on the deal
    earthly_hand: bool = False      # Won on the first discard

    # Computed fields (set during analysis)
    groups: List[Meld] = field(default_factory=list)
    eye: Optional[Meld] = None
    all_tiles: List[Tile] = field(default_factory=list)
    wind_groups: List[int] = field(default_factory=list)
    dragon_groups: int = 0

    def __post_init__(self):
        self._analyze()

    def _analyze(self):
        """Split the hand into groups and eye and collect honour groups"""
        self.groups = [m for m in self.melds if m.is_group]
        eyes = [m for m in self.melds if m.is_eye]
        self.eye = eyes[0] if eyes else None

        self.all_tiles = []
        for meld in self.melds:
            self.all_tiles.extend(meld.tiles)

        self.wind_groups = [m.base_tile.value for m in self.groups
                            if m.is_pung_or_kong and m.suit == TileSuit.WINDS]
        self.dragon_groups = sum(1 for m in self.groups
                                 if m.is_pung_or_kong and m.suit == TileSuit.DRAGONS)


@dataclass
class ScoringPattern:
    """Represents a scoring pattern"""
    name: str
    chinese_name: str
    points: Union[int, Callable[[FanContext], int]]
    check_func: Callable[[FanContext], bool]

    def value(self, ctx: FanContext) -> int:
        if callable(self.points):
            return self.points(ctx)
        return self.points


class FanScorer:
    """
    Fan counter for the house fan table.

    The table is fixed: limit hands, one shape pattern, and +1 bonuses.
    """

    def __init__(self):
        self.limit_patterns = self._create_limit_patterns()
        self.shape_patterns = self._create_shape_patterns()
        self.bonus_patterns = self._create_bonus_patterns()

    def calculate_fan(
        self,
        melds: List[Meld],
        seat_wind: int,
        prevailing_wind: int,
        self_pick: bool = False,
        last_tile: bool = False,
        won_on_replacement: bool = False,
        won_on_double_replacement: bool = False,
        robbed_kong: bool = False,
        heavenly_hand: bool = False,
        earthly_hand: bool = False,
    ) -> int:
        """
        Count the fan of a hand.

        Returns:
            NOT_COMPLETE if the melds are not a complete hand, LIMIT for a
            limit hand, otherwise the fan count
        """
        if not is_complete_hand(melds):
            return NOT_COMPLETE

        ctx = FanContext(
            melds=melds,
            seat_wind=seat_wind,
            prevailing_wind=prevailing_wind,
            self_pick=self_pick,
            last_tile=last_tile,
            won_on_replacement=won_on_replacement,
            won_on_double_replacement=won_on_double_replacement,
            robbed_kong=robbed_kong,
            heavenly_hand=heavenly_hand,
            earthly_hand=earthly_hand,
        )
        return self.evaluate(ctx)

    def evaluate(self, ctx: FanContext) -> int:
        """Fan of an analysed complete hand"""
        if self.get_limit_pattern(ctx) is not None:
            return LIMIT
        return sum(points for _, points in self.get_matching_patterns(ctx))

    def get_limit_pattern(self, ctx: FanContext) -> Optional[ScoringPattern]:
        """First limit pattern the hand matches, if any"""
        for pattern in self.limit_patterns:
            if pattern.check_func(ctx):
                return pattern
        return None

    def get_matching_patterns(self, ctx: FanContext) -> List[Tuple[ScoringPattern, int]]:
        """
        Non-limit patterns that score, with their points: at most one shape
        pattern followed by every matching bonus pattern.
        """
        matched = []
        for pattern in self.shape_patterns:
            if pattern.check_func(ctx):
                matched.append((pattern, pattern.value(ctx)))
                break

        for pattern in self.bonus_patterns:
            if pattern.check_func(ctx):
                matched.append((pattern, pattern.value(ctx)))

        return matched

    def _create_limit_patterns(self) -> List[ScoringPattern]:
        return [
            ScoringPattern("Special Hand", "特殊和", LIMIT, lambda ctx: len(ctx.melds) == 1),
            ScoringPattern("Double Replacement", "杠上杠", LIMIT,
                           lambda ctx: ctx.won_on_double_replacement),
            ScoringPattern("Heavenly Hand", "天和", LIMIT, lambda ctx: ctx.heavenly_hand),
            ScoringPattern("Earthly Hand", "地和", LIMIT, lambda ctx: ctx.earthly_hand),
            ScoringPattern("Great Four Winds", "大四喜", LIMIT, self._check_great_four_winds),
            ScoringPattern("Small Four Winds", "小四喜", LIMIT, self._check_small_four_winds),
            ScoringPattern("All Kongs", "十八罗汉", LIMIT, self._check_all_kongs),
            ScoringPattern("Concealed Pungs", "四暗刻", LIMIT, self._check_self_drawn_concealed_pungs),
            ScoringPattern("All Terminals", "清幺九", LIMIT, self._check_all_terminals),
        ]

    def _create_shape_patterns(self) -> List[ScoringPattern]:
        # Table order is priority order
        return [
            ScoringPattern("Great Dragons", "大三元", 5, lambda ctx: ctx.dragon_groups == 3),
            ScoringPattern("Small Dragons", "小三元", 3, self._check_small_dragons),
            ScoringPattern("All Honours", "字一色", lambda ctx: 10 - ctx.dragon_groups,
                           self._check_all_honours),
            ScoringPattern("All One Suit", "清一色", 7, self._check_all_one_suit),
            ScoringPattern("Mixed One Suit", "混一色", 3, self._check_mixed_one_suit),
            ScoringPattern("All Triplets", "对对和", 3, self._check_all_triplets),
            ScoringPattern("All Chows", "平和", 1, self._check_all_chows),
        ]

    def _create_bonus_patterns(self) -> List[ScoringPattern]:
        return [
            ScoringPattern("Seat Wind", "门风", 1, lambda ctx: ctx.seat_wind in ctx.wind_groups),
            ScoringPattern("Prevailing Wind", "圈风", 1,
                           lambda ctx: ctx.prevailing_wind in ctx.wind_groups),
            ScoringPattern("Dragon Pung", "箭刻", lambda ctx: ctx.dragon_groups,
                           lambda ctx: ctx.dragon_groups > 0),
            ScoringPattern("Mixed Orphans", "混幺九", 1, self._check_mixed_orphans),
            ScoringPattern("Self Pick", "自摸", 1, lambda ctx: ctx.self_pick),
            ScoringPattern("Robbing the Kong", "抢杠", 1, lambda ctx: ctx.robbed_kong),
            ScoringPattern("Last Tile", "海底捞月", 1, lambda ctx: ctx.last_tile),
            ScoringPattern("Won on Replacement", "杠上开花", 1, lambda ctx: ctx.won_on_replacement),
            ScoringPattern("Fully Concealed", "门前清", 1,
                           lambda ctx: all(m.concealed for m in ctx.melds)),
        ]

    # ========== Pattern Check Functions ==========

    # --- Limit ---
    def _check_great_four_winds(self, ctx: FanContext) -> bool:
        """Pungs/Kongs of all four winds"""
        return len(set(ctx.wind_groups)) == 4

    def _check_small_four_winds(self, ctx: FanContext) -> bool:
        """Three wind pungs and the fourth wind as the eye"""
        if len(set(ctx.wind_groups)) != 3 or ctx.eye is None:
            return False
        eye_tile = ctx.eye.base_tile
        return eye_tile.suit == TileSuit.WINDS and eye_tile.value not in ctx.wind_groups

    def _check_all_kongs(self, ctx: FanContext) -> bool:
        return all(m.is_kong for m in ctx.groups)

    def _check_self_drawn_concealed_pungs(self, ctx: FanContext) -> bool:
        """Four concealed pungs/kongs on a self-drawn tile"""
        if not ctx.self_pick:
            return False
        return all(m.is_pung_or_kong and m.concealed for m in ctx.groups)

    def _check_all_terminals(self, ctx: FanContext) -> bool:
        """Every group a pung/kong of ones and nines"""
        return all(m.is_pung_or_kong and m.base_tile.is_terminal for m in ctx.groups)

    # --- Shape ---
    def _check_small_dragons(self, ctx: FanContext) -> bool:
        """Two dragon pungs + dragon pair"""
        return (ctx.dragon_groups == 2 and ctx.eye is not None
                and ctx.eye.suit == TileSuit.DRAGONS)

    def _check_all_honours(self, ctx: FanContext) -> bool:
        return all(t.is_honor for t in ctx.all_tiles)

    def _check_all_one_suit(self, ctx: FanContext) -> bool:
        """Every tile from the same numbered suit"""
        suits = set(t.suit for t in ctx.all_tiles)
        return len(suits) == 1 and ctx.all_tiles[0].is_simple

    def _check_mixed_one_suit(self, ctx: FanContext) -> bool:
        """One numbered suit plus honours"""
        simple_suits = set(t.suit for t in ctx.all_tiles if t.is_simple)
        has_honours = any(t.is_honor for t in ctx.all_tiles)
        return len(simple_suits) == 1 and has_honours

    def _check_all_triplets(self, ctx: FanContext) -> bool:
        return not any(m.is_chow for m in ctx.groups)

    def _check_all_chows(self, ctx: FanContext) -> bool:
        return all(m.is_chow for m in ctx.groups)

    # --- Bonus ---
    def _check_mixed_orphans(self, ctx: FanContext) -> bool:
        """Every group a pung/kong of terminals or honours"""
        return all(m.is_pung_or_kong and m.base_tile.is_terminal_or_honor for m in ctx.groups)


_default_scorer = FanScorer()


def calculate_fan(
    melds: List[Meld],
    seat_wind: int,
    prevailing_wind: int,
    self_pick: bool = False,
    last_tile: bool = False,
    won_on_replacement: bool = False,
    won_on_double_replacement: bool = False,
    robbed_kong: bool = False,
    heavenly_hand: bool = False,
    earthly_hand: bool = False,
) -> int:
    """Count fan with the shared scorer. See FanScorer.calculate_fan."""
    return _default_scorer.calculate_fan(
        melds,
        seat_wind,
        prevailing_wind,
        self_pick=self_pick,
        last_tile=last_tile,
        won_on_replacement=won_on_replacement,
        won_on_double_replacement=won_on_double_replacement,
        robbed_kong=robbed_kong,
        heavenly_hand=heavenly_hand,
        earthly_hand=earthly_hand,
    )

"""
Fan Mahjong Hand Completion Module

Finds every way a hand can be split into a complete winning hand, given the
melds already fixed on the table.

The search works on private tuples; neither the caller's hand nor its fixed
melds are touched. Each distinct partition of the tiles into melds is
reported once, regardless of the order tiles are held in.
"""

from itertools import combinations
from typing import Iterable, Iterator, List, Optional, Tuple

from .tiles import Tile, TileSet
from .meld import Meld
from .scoring import calculate_fan, is_complete_hand, NOT_COMPLETE

# Melds in a standard complete hand, not counting the eye
GROUPS_PER_HAND = 4
HAND_SIZE = 14


def _fixed_melds_consistent(tiles: Tuple[Tile, ...], melds: List[Meld]) -> bool:
    """Fixed melds must be distinct groups, and no tile kind may exceed four copies"""
    if len(melds) > GROUPS_PER_HAND:
        return False

    seen = set()
    for meld in melds:
        if not meld.is_group:
            return False
        if id(meld) in seen:
            return False
        seen.add(id(meld))

    all_tiles = list(tiles)
    for meld in melds:
        all_tiles.extend(meld.tiles)
    counts = TileSet(all_tiles).to_count_array()
    return int(counts.max()) <= TileSet.COPIES_PER_TYPE


def _group_key(tiles: Iterable[Tile]) -> Tuple:
    return tuple(sorted(t.sort_key for t in tiles))


def _search(tiles: Tuple[Tile, ...], chosen: Tuple[Meld, ...],
            floor: Optional[Tuple]) -> Iterator[Tuple[Meld, ...]]:
    """
    Split `tiles` into groups plus one eye.

    Groups are taken in non-decreasing key order so that each partition is
    produced once; triples with the same key at one level lead to the same
    remainder and are only expanded once.
    """
    if len(tiles) == 2:
        eye = Meld(list(tiles), concealed=True)
        if eye.is_eye:
            yield chosen + (eye,)
        return

    tried = set()
    for i, j, k in combinations(range(len(tiles)), 3):
        group = (tiles[i], tiles[j], tiles[k])
        key = _group_key(group)
        if key in tried or (floor is not None and key < floor):
            continue
        tried.add(key)

        meld = Meld(list(group), concealed=True)
        if not meld.is_group:
            continue

        rest = tuple(t for n, t in enumerate(tiles) if n not in (i, j, k))
        yield from _search(rest, chosen + (meld,), key)


def _finish(fixed: List[Meld], found: Tuple[Meld, ...],
            claimed: Optional[Tile]) -> List[Meld]:
    """Fresh copies of a completion; the meld holding the claimed tile is exposed"""
    result = [m.copy() for m in fixed]
    for meld in found:
        new_meld = meld.copy()
        if claimed is not None and meld.contains_instance(claimed):
            new_meld.expose()
            claimed = None
        result.append(new_meld)
    return result


def all_completions(hand: Iterable[Tile], melds: List[Meld],
                    tile: Optional[Tile] = None) -> Iterator[List[Meld]]:
    """
    Enumerate the complete hands reachable from a hand and its fixed melds.

    Args:
        hand: Concealed tiles (a TileSet or any iterable of tiles)
        melds: Melds already declared on the table
        tile: A claimed tile joining the hand; the meld it lands in is exposed

    Yields:
        Lists of melds: the fixed melds first, then the new concealed melds
        with the eye last. Every yielded list is independent of the inputs
        and of the other yielded lists.
    """
    tiles = tuple(hand)
    if tile is not None:
        tiles = tiles + (tile,)
    fixed = list(melds)

    if not _fixed_melds_consistent(tiles, fixed):
        return

    if not fixed and len(tiles) == HAND_SIZE:
        special = Meld(list(tiles), concealed=True)
        if special.is_special:
            if tile is not None:
                special.expose()
            yield [special]

    if len(tiles) < 2 or (len(tiles) - 2) % 3 != 0:
        return
    if len(fixed) + (len(tiles) - 2) // 3 != GROUPS_PER_HAND:
        return

    for found in _search(tiles, (), None):
        completion = _finish(fixed, found, tile)
        if is_complete_hand(completion):
            yield completion


def has_mahjong(hand: Iterable[Tile], melds: List[Meld], tile: Optional[Tile] = None) -> bool:
    """Check whether the hand (plus an optional extra tile) is a winning hand"""
    return next(all_completions(hand, melds, tile), None) is not None


def best_completion(
    hand: Iterable[Tile],
    melds: List[Meld],
    seat_wind: int,
    prevailing_wind: int,
    self_pick: bool,
    tile: Optional[Tile] = None,
    **flags,
) -> Optional[List[Meld]]:
    """
    The completion worth the most fan.

    Args:
        hand: Concealed tiles
        melds: Fixed melds
        seat_wind: Winner's seat wind
        prevailing_wind: Prevailing wind
        self_pick: Whether the winning tile was drawn by the winner
        tile: Claimed winning tile, if it is not in `hand` yet
        **flags: Extra win conditions passed to calculate_fan

    Returns:
        The highest scoring completion (first found on ties), or None
    """
    if self_pick and tile is not None:
        # A drawn tile is concealed like the rest of the hand
        hand, tile = list(hand) + [tile], None

    best = None
    best_fan = NOT_COMPLETE
    for completion in all_completions(hand, melds, tile):
        fan = calculate_fan(completion, seat_wind, prevailing_wind, self_pick=self_pick, **flags)
        if fan > best_fan:
            best, best_fan = completion, fan
    return best

"""
Tests for Fan Mahjong Game Engine
"""

import pytest
import numpy as np
from typing import List

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fan_mahjong.tiles import (
    Tile, TileSet, TileSuit, SuitColor, WindType, DragonType, suit_color,
    char, bam, dot, wind, dragon, flower, season, EAST, SOUTH, WEST, NORTH,
    RED_DRAGON, GREEN_DRAGON, WHITE_DRAGON
)
from fan_mahjong.meld import Meld
from fan_mahjong.move import Move
from fan_mahjong.player import PlayerState, Controller
from fan_mahjong.wall import Wall
from fan_mahjong.rules import RuleSet, SINGLE_HAND_RULES, get_rules
from fan_mahjong.game import GameState
from fan_mahjong.scoring import calculate_fan, LIMIT


TEST_RULES = RuleSet(
    name="Test",
    num_hands=1,
    hands_per_round=1,
    max_bonus_hands=0,
    bonus_tiles=False,
    auto_deal=False,
)


def make_game(rules: RuleSet = TEST_RULES, seed: int = 42) -> GameState:
    return GameState(rules, seed=seed)


def set_hand(game: GameState, seat: int, tiles: List[Tile], melds: List[Meld] = None) -> None:
    player = game.players[seat]
    player.hand = TileSet(tiles)
    player.melds = melds if melds is not None else []


def pass_all(game: GameState) -> None:
    """Submit Pass for every seat until the trick comes back to the active player"""
    while game.sub_active_player != game.active_player:
        assert game.apply_move(Move.pass_move())


# Thirteen tiles waiting on 5 dots: 123 456 789 bamboo, 3-4 dots, white pair
WAITING_ON_5D = [bam(1), bam(2), bam(3), bam(4), bam(5), bam(6), bam(7), bam(8), bam(9),
                 dot(3), dot(4), WHITE_DRAGON, WHITE_DRAGON]


class TestTiles:
    """Test tile system"""

    def test_tile_creation(self):
        """Test creating tiles"""
        t1 = char(1)
        assert t1.suit == TileSuit.CHARACTERS
        assert t1.value == 1

        t2 = bam(5)
        assert t2.suit == TileSuit.BAMBOOS
        assert t2.value == 5

        t3 = dot(9)
        assert t3.suit == TileSuit.DOTS
        assert t3.value == 9

    def test_invalid_values(self):
        """Test tile value validation"""
        with pytest.raises(ValueError):
            char(0)
        with pytest.raises(ValueError):
            Tile(TileSuit.DRAGONS, 3)

    def test_suit_color(self):
        """Test colour derived from the suit tag"""
        assert suit_color(TileSuit.BAMBOOS) == SuitColor.SIMPLE
        assert suit_color(TileSuit.WINDS) == SuitColor.HONOURS
        assert suit_color(TileSuit.DRAGONS) == SuitColor.HONOURS
        assert suit_color(TileSuit.FLOWERS) == SuitColor.BONUS
        assert flower(WindType.EAST).is_bonus
        assert season(WindType.NORTH).color == SuitColor.BONUS

    def test_honor_tiles(self):
        """Test honor tile properties"""
        east = wind(WindType.EAST)
        assert east.is_honor
        assert not east.is_terminal

        red = dragon(DragonType.RED)
        assert red.is_honor

    def test_terminal_tiles(self):
        """Test terminal tile properties"""
        assert char(1).is_terminal
        assert char(9).is_terminal
        assert not char(5).is_terminal

        assert char(1).is_terminal_or_honor
        assert not char(5).is_terminal_or_honor

    def test_equality_ignores_instance_id(self):
        """Test tiles compare by value"""
        assert char(3, 7) == char(3, 9)
        assert hash(char(3, 7)) == hash(char(3, 9))
        assert char(3) != bam(3)

    def test_tile_index(self):
        """Test tile index calculation"""
        assert char(1).tile_index == 0
        assert char(9).tile_index == 8
        assert bam(1).tile_index == 9
        assert dot(9).tile_index == 26
        assert EAST.tile_index == 27
        assert NORTH.tile_index == 30
        assert RED_DRAGON.tile_index == 31
        assert WHITE_DRAGON.tile_index == 33
        assert flower(WindType.EAST).tile_index == 34
        assert season(WindType.NORTH).tile_index == 41

    def test_tile_from_index(self):
        """Test creating tiles from index"""
        for idx in range(42):
            assert Tile.from_index(idx).tile_index == idx

    def test_tile_from_string(self):
        """Test parsing tiles from strings"""
        assert Tile.from_string("1万") == char(1)
        assert Tile.from_string("5条") == bam(5)
        assert Tile.from_string("9筒") == dot(9)
        assert Tile.from_string("东") == EAST
        assert Tile.from_string("中") == RED_DRAGON
        with pytest.raises(ValueError):
            Tile.from_string("x")

    def test_wind_rotation(self):
        """Test the deal passes South to East"""
        assert WindType.SOUTH.rotate() == WindType.EAST
        assert WindType.EAST.rotate() == WindType.NORTH


class TestTileSet:
    """Test TileSet operations"""

    def test_create_full_set(self):
        """Test creating full tile set"""
        assert len(TileSet.create_full_set()) == 144
        assert len(TileSet.create_full_set(bonus_tiles=False)) == 136

    def test_tile_counts(self):
        """Test counting tiles"""
        tiles = TileSet([char(1), char(1), char(2), bam(3)])

        assert tiles.count(char(1)) == 2
        assert tiles.count(char(2)) == 1
        assert tiles.count(char(3)) == 0

    def test_to_count_array(self):
        """Test conversion to count array"""
        tiles = TileSet([char(1), char(1), char(2), EAST])
        counts = tiles.to_count_array()

        assert counts.shape == (42,)
        assert counts[0] == 2
        assert counts[1] == 1
        assert counts[27] == 1
        assert counts[10] == 0

    def test_play(self):
        """Test playing tiles by value and by index"""
        tiles = TileSet([char(1), char(2), char(3)])
        assert tiles.play(char(2)) == char(2)
        assert tiles.play(0) == char(1)
        assert list(tiles) == [char(3)]

        with pytest.raises(ValueError):
            tiles.play(char(9))
        with pytest.raises(ValueError):
            tiles.play(5)

    def test_insertion_order(self):
        """Test tiles keep insertion order"""
        tiles = TileSet()
        tiles.draw([dot(9), char(1), EAST])
        assert list(tiles) == [dot(9), char(1), EAST]

    def test_copy_is_independent(self):
        """Test deep copy"""
        tiles = TileSet([char(1), char(2)])
        clone = tiles.copy()
        assert clone == tiles
        clone.add(char(3))
        assert len(tiles) == 2


class TestWall:
    """Test wall operations"""

    def test_wall_creation(self):
        """Test wall creation"""
        assert Wall().remaining == 144
        assert Wall(bonus_tiles=False).remaining == 136

    def test_seeded_shuffle_is_reproducible(self):
        """Test the same generator seed gives the same wall"""
        wall1 = Wall(rng=np.random.default_rng(3))
        wall2 = Wall(rng=np.random.default_rng(3))
        assert wall1.tiles == wall2.tiles

    def test_draw_ends(self):
        """Test live draws and replacement draws come from opposite ends"""
        wall = Wall(rng=np.random.default_rng(1))
        first, last = wall.tiles[0], wall.tiles[-1]

        assert wall.draw() is last
        assert wall.draw_replacement() is first
        assert wall.remaining == 142

    def test_empty_wall(self):
        """Test drawing from an empty wall"""
        wall = Wall()
        wall.tiles = []
        assert wall.is_empty
        assert wall.draw() is None
        assert wall.draw_replacement() is None

    def test_explicit_tiles_kept(self):
        """Test a wall built from given tiles is not refilled"""
        assert Wall(tiles=[]).is_empty
        wall = Wall(tiles=[char(1), char(2)])
        assert wall.remaining == 2
        assert wall.draw() == char(2)
        assert wall.draw_replacement() == char(1)
        assert wall.draw() is None

    def test_deal_hands(self):
        """Test dealing hands"""
        wall = Wall(bonus_tiles=False)
        hands = wall.deal_hands(4)

        assert len(hands) == 4
        for hand in hands:
            assert len(hand) == 13
        assert wall.remaining == 136 - 52

    def test_copy_is_independent(self):
        """Test wall copies share no tiles list"""
        wall = Wall(rng=np.random.default_rng(5))
        clone = wall.copy()
        assert clone == wall
        clone.draw()
        assert wall.remaining == 144


class TestPlayerState:
    """Test player operations"""

    def test_can_pung(self):
        """Test pung detection"""
        player = PlayerState(0)
        player.add_tile(char(5))
        player.add_tile(char(5))

        assert player.can_pung(char(5))
        assert not player.can_pung(char(6))

    def test_can_chow(self):
        """Test chow detection"""
        player = PlayerState(0, hand=TileSet([char(1), char(2), char(4), char(5)]))

        assert player.can_chow(char(3)) == [(char(1), char(2)), (char(2), char(4)), (char(4), char(5))]
        assert player.can_chow(EAST) == []

    def test_form_meld_from_claim(self):
        """Test a claimed meld is exposed and uses hand tiles"""
        player = PlayerState(0, hand=TileSet([char(5), char(5), dot(1)]))
        assert player.form_meld(Meld([char(5)] * 3), claimed=char(5))

        assert list(player.hand) == [dot(1)]
        assert player.melds[0].is_pung
        assert player.melds[0].exposed

    def test_form_meld_failure_leaves_hand(self):
        """Test a failed meld changes nothing"""
        player = PlayerState(0, hand=TileSet([char(5), dot(1)]))
        assert not player.form_meld(Meld([char(5)] * 3), claimed=char(5))
        assert len(player.hand) == 2
        assert player.melds == []

    def test_declare_kong(self):
        """Test concealed and promoted kongs"""
        player = PlayerState(0, hand=TileSet([char(5)] * 4 + [dot(2)]))
        assert player.declare_kong(char(5))
        assert player.melds[0].is_kong and player.melds[0].concealed

        player = PlayerState(0, hand=TileSet([dot(2)]), melds=[Meld([dot(2)] * 3)])
        assert player.kong_candidates() == [dot(2)]
        assert player.declare_kong(dot(2))
        assert player.melds[0].is_kong
        assert player.melds[0].exposed_from_exposed

        assert not PlayerState(0, hand=TileSet([dot(3)])).declare_kong(dot(3))

    def test_copy_shares_controller(self):
        """Test copies are deep but share the controller"""
        controller = Controller.ai(object())
        player = PlayerState(1, WindType.SOUTH, hand=TileSet([char(1)]), controller=controller)
        clone = player.copy()

        assert clone == player
        assert clone.controller is controller
        assert clone.controller.is_ai
        assert not PlayerState(0).controller.is_ai
        clone.hand.add(char(2))
        assert len(player.hand) == 1

    def test_controller_not_part_of_value(self):
        """Test controllers are ignored by equality"""
        assert PlayerState(0, controller=Controller.human()) == PlayerState(0, controller=Controller.ai(None))


class TestRules:
    """Test rule presets"""

    def test_get_rules(self):
        assert get_rules("single") is SINGLE_HAND_RULES
        with pytest.raises(ValueError):
            get_rules("riichi")


class TestGameState:
    """Test the trick state machine"""

    def test_game_creation(self):
        """Test game initialization"""
        game = make_game()

        assert game.active_player == 0
        assert game.sub_active_player == 0
        assert len(game.players[0].hand) == 14
        for seat in range(1, 4):
            assert len(game.players[seat].hand) == 13
        assert game.wall.remaining == 136 - 53
        assert game.prevailing_wind == WindType.EAST
        assert [p.seat_wind for p in game.players] == [WindType.EAST, WindType.SOUTH,
                                                       WindType.WEST, WindType.NORTH]

    def test_same_seed_same_game(self):
        """Test dealing is reproducible from the seed"""
        assert make_game(seed=9) == make_game(seed=9)
        assert make_game(seed=9).wall.tiles != make_game(seed=10).wall.tiles

    def test_bonus_tiles_set_aside(self):
        """Test no hand holds a flower or season after the deal"""
        game = GameState(RuleSet(name="Bonus", auto_deal=False), seed=4)
        bonus = 0
        for player in game.players:
            assert not any(t.is_bonus for t in player.hand)
            bonus += len(player.bonus_tiles)
        assert bonus + game.wall.remaining + sum(len(p.hand) for p in game.players) == 144

    def test_turn_holder_cannot_pass(self):
        """Test the active player must act"""
        game = make_game()
        assert not game.apply_move(Move.pass_move())
        assert game.sub_active_player == 0

    def test_discard_must_be_held(self):
        """Test discarding a tile not in hand"""
        game = make_game()
        set_hand(game, 0, [char(1)] * 3 + [char(2)] * 3 + [char(3)] * 3 + [char(4)] * 3 + [dot(7), dot(8)])
        assert not game.apply_move(Move.discard_tile(EAST))
        assert game.apply_move(Move.discard_tile(dot(8)))

    def test_all_pass_advances(self):
        """Test a discard nobody claims goes to the pile and the next seat draws"""
        game = make_game()
        wall_before = game.wall.remaining
        tile = game.players[0].hand[0]

        assert game.apply_move(Move.discard_tile(tile))
        assert game.available_tile == tile
        pass_all(game)

        assert game.active_player == 1
        assert game.sub_active_player == 1
        assert len(game.discard_pile) == 1
        assert game.wall.remaining == wall_before - 1
        assert len(game.players[0].hand) == 13
        assert len(game.players[1].hand) == 14
        assert game.buffer == [None, None, None, None]
        assert game.available_tile is None

    def test_empty_wall_goulash(self):
        """Test running out of tiles ends the hand without a winner"""
        game = make_game()
        game.wall.tiles = []
        game.apply_move(Move.discard_tile(game.players[0].hand[0]))
        for _ in range(3):
            game.apply_move(Move.pass_move())

        assert game.hand_finished
        assert game.last_result.goulash
        assert [p.score for p in game.players] == [0, 0, 0, 0]
        assert game.game_finished
        assert game.get_valid_moves() == []

    def test_pung_claim(self):
        """Test a pung claim takes the tile and the turn"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(9)])
        set_hand(game, 2, [dot(9), dot(9)] + [bam(i) for i in range(1, 10)] + [NORTH, NORTH])

        game.apply_move(Move.discard_tile(dot(9)))
        game.apply_move(Move.pass_move())
        assert game.apply_move(Move.attempt(Meld([dot(9)] * 3), dot(9)))
        game.apply_move(Move.pass_move())

        assert game.active_player == 2
        assert game.sub_active_player == 2
        meld = game.players[2].melds[0]
        assert meld.is_pung and meld.exposed
        assert len(game.discard_pile) == 0
        assert game.players[2].hand.count(dot(9)) == 0

    def test_chow_only_from_next_seat(self):
        """Test seats other than the next one cannot chow"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 1, [dot(3), dot(4)] + [bam(i) for i in range(1, 10)] + [NORTH, NORTH])
        set_hand(game, 2, [dot(3), dot(4)] + [bam(i) for i in range(1, 10)] + [NORTH, NORTH])
        chow = Move.attempt(Meld([dot(3), dot(4), dot(5)]), dot(5))

        game.apply_move(Move.discard_tile(dot(5)))
        assert game.apply_move(chow)
        assert not game.apply_move(chow)
        game.apply_move(Move.pass_move())
        game.apply_move(Move.pass_move())

        assert game.active_player == 1
        assert game.players[1].melds[0].is_chow

    def test_pung_beats_chow(self):
        """Test a pung claim wins over the next seat's chow"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 1, [dot(3), dot(4)] + [bam(i) for i in range(1, 10)] + [NORTH, NORTH])
        set_hand(game, 3, [dot(5), dot(5)] + [bam(i) for i in range(1, 10)] + [NORTH, NORTH])

        game.apply_move(Move.discard_tile(dot(5)))
        game.apply_move(Move.attempt(Meld([dot(3), dot(4), dot(5)]), dot(5)))
        game.apply_move(Move.pass_move())
        game.apply_move(Move.attempt(Meld([dot(5)] * 3), dot(5)))

        assert game.active_player == 3
        assert game.players[3].melds[0].is_pung
        assert game.players[1].melds == []

    def test_discard_win_priority(self):
        """Test Mahjong beats a pung and pays with the discarder doubling"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 1, [dot(5), dot(5)] + [char(i) for i in range(1, 10)] + [NORTH, NORTH])
        set_hand(game, 3, list(WAITING_ON_5D))

        game.apply_move(Move.discard_tile(dot(5)))
        game.apply_move(Move.attempt(Meld([dot(5)] * 3), dot(5)))
        game.apply_move(Move.pass_move())
        assert game.apply_move(Move.declare_mahjong(dot(5)))

        result = game.last_result
        assert game.hand_finished
        assert result.winner == 3
        assert result.discarder == 0
        assert not result.self_pick
        assert result.flags["earthly_hand"]
        assert result.fan == LIMIT
        # Seat 0 is East and the discarder: 128 x 2 x 2
        assert result.payments == [-512, -128, -128, 768]
        assert sum(p.score for p in game.players) == 0

    def test_claimed_group_is_exposed(self):
        """Test the completion group holding the claimed tile is exposed"""
        game = make_game()
        game.earthly = False
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 2, list(WAITING_ON_5D))

        game.apply_move(Move.discard_tile(dot(5)))
        game.apply_move(Move.pass_move())
        game.apply_move(Move.declare_mahjong(dot(5)))
        game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 2
        exposed = [m for m in result.completion if m.exposed]
        assert len(exposed) == 1
        assert exposed[0].tiles == [dot(3), dot(4), dot(5)]
        # All chows, nothing else
        assert result.fan == 1

    def test_heavenly_hand(self):
        """Test East winning on the deal"""
        game = make_game()
        set_hand(game, 0, list(WAITING_ON_5D) + [dot(5)])

        assert game.apply_move(Move.declare_mahjong())
        for _ in range(3):
            assert game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 0
        assert result.self_pick
        assert result.flags["heavenly_hand"]
        assert result.fan == LIMIT
        assert result.base_points == 128
        # Self-pick and East winner both double
        assert result.payments == [1536, -512, -512, -512]

    def test_false_mahjong_rejected(self):
        """Test declaring Mahjong without a winning hand"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(4), char(5), char(7), char(8), dot(1),
                           dot(4), dot(7), bam(2), bam(5), bam(8), EAST, SOUTH])
        assert not game.apply_move(Move.declare_mahjong())

    def test_others_only_pass_after_self_pick(self):
        """Test no claims are possible when no tile is offered"""
        game = make_game()
        set_hand(game, 0, list(WAITING_ON_5D) + [dot(5)])
        set_hand(game, 1, [dot(5), dot(5)] + [char(i) for i in range(1, 10)] + [NORTH, NORTH])

        game.apply_move(Move.declare_mahjong())
        assert game.get_valid_moves() == [Move.pass_move()]
        assert not game.apply_move(Move.attempt(Meld([dot(5)] * 3), dot(5)))

    def test_robbing_the_kong(self):
        """Test a Mahjong on the kong tile rejects the kong and wins"""
        game = make_game()
        set_hand(game, 0, [dot(5), char(1), char(2), char(3), char(4), char(5), char(6), char(7),
                           char(8), char(9), EAST],
                 melds=[Meld([dot(5)] * 3)])
        set_hand(game, 2, list(WAITING_ON_5D))

        assert game.apply_move(Move.attempt(Meld([dot(5)] * 4), dot(5)))
        # Only Pass or Mahjong while a kong is pending
        assert not game.apply_move(Move.attempt(Meld([dot(5)] * 3), dot(5)))
        assert game.apply_move(Move.pass_move())
        assert game.apply_move(Move.declare_mahjong(dot(5)))
        assert game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 2
        assert result.discarder == 0
        assert result.flags["robbed_kong"]
        assert result.fan == calculate_fan(result.completion, WindType.WEST, WindType.EAST,
                                           robbed_kong=True)
        # All chows + robbing the kong
        assert result.fan == 2
        assert game.players[0].melds[0].is_pung
        assert game.players[0].hand.count(dot(5)) == 0

    def test_promoted_kong_draws_replacement(self):
        """Test an unrobbed kong commits and the same seat keeps the turn"""
        game = make_game()
        set_hand(game, 0, [dot(5), char(1), char(2), char(3), char(4), char(5), char(6), char(7),
                           char(8), char(9), EAST],
                 melds=[Meld([dot(5)] * 3)])
        wall_before = game.wall.remaining
        first_tile = game.wall.tiles[0]

        game.apply_move(Move.attempt(Meld([dot(5)] * 4), dot(5)))
        for _ in range(3):
            game.apply_move(Move.pass_move())

        player = game.players[0]
        assert player.melds[0].is_kong
        assert player.melds[0].exposed_from_exposed
        assert game.active_player == 0
        assert game.sub_active_player == 0
        assert game.replacement_draws == 1
        assert game.wall.remaining == wall_before - 1
        assert player.hand[-1] is first_tile
        assert len(player.hand) == 11

    def test_concealed_kong(self):
        """Test a concealed kong from four tiles in hand"""
        game = make_game()
        set_hand(game, 0, [bam(7)] * 4 + [char(i) for i in range(1, 10)] + [EAST])

        moves = game.get_valid_moves()
        kong = Move.attempt(Meld([bam(7)] * 4), bam(7))
        assert kong in moves
        game.apply_move(kong)
        for _ in range(3):
            game.apply_move(Move.pass_move())

        meld = game.players[0].melds[0]
        assert meld.is_kong and meld.concealed

    def test_valid_moves_for_turn_holder(self):
        """Test the enumerator offers every distinct discard and no Pass"""
        game = make_game()
        moves = game.get_valid_moves()
        discards = {m.tile for m in moves if m.is_discard}

        assert discards == set(game.players[0].hand.get_unique_tiles())
        assert not any(m.is_pass for m in moves)
        assert all(game.is_valid(m) for m in moves)

    def test_valid_moves_for_reaction(self):
        """Test the enumerator offers claims on the discard"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 1, [dot(3), dot(4), dot(5), dot(5)] + [bam(i) for i in range(1, 8)] + [NORTH, NORTH])

        game.apply_move(Move.discard_tile(dot(5)))
        moves = game.get_valid_moves()

        assert Move.pass_move() in moves
        assert Move.attempt(Meld([dot(5)] * 3), dot(5)) in moves
        assert Move.attempt(Meld([dot(3), dot(4), dot(5)]), dot(5)) in moves
        assert not any(m.is_mahjong for m in moves)

    def test_east_rotates_after_losing(self):
        """Test the deal passes when East does not win"""
        rules = RuleSet(name="Two", num_hands=2, hands_per_round=4, max_bonus_hands=0,
                        bonus_tiles=False, auto_deal=False)
        game = make_game(rules)
        game.earthly = False
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 2, list(WAITING_ON_5D))

        game.apply_move(Move.discard_tile(dot(5)))
        game.apply_move(Move.pass_move())
        game.apply_move(Move.declare_mahjong(dot(5)))
        game.apply_move(Move.pass_move())

        assert game.hand_number == 1
        assert not game.game_finished
        assert game.east_seat == 1

        game.init_hand()
        assert game.active_player == 1
        assert len(game.players[1].hand) == 14

    def test_east_win_repeats_deal_up_to_cap(self):
        """Test East keeps the deal after a win until the bonus hands run out"""
        rules = RuleSet(name="Repeat", num_hands=2, hands_per_round=4, max_bonus_hands=1,
                        bonus_tiles=False, auto_deal=False)
        game = make_game(rules)
        winds = [p.seat_wind for p in game.players]

        set_hand(game, 0, list(WAITING_ON_5D) + [dot(5)])
        assert game.apply_move(Move.declare_mahjong())
        for _ in range(3):
            assert game.apply_move(Move.pass_move())

        assert game.hand_finished
        assert game.last_result.winner == 0
        assert game.bonus_hand == 1
        assert game.hand_number == 0
        assert game.east_seat == 0
        assert [p.seat_wind for p in game.players] == winds
        assert not game.game_finished

        game.init_hand()
        assert game.active_player == 0
        set_hand(game, 0, list(WAITING_ON_5D) + [dot(5)])
        assert game.apply_move(Move.declare_mahjong())
        for _ in range(3):
            assert game.apply_move(Move.pass_move())

        assert game.last_result.winner == 0
        assert game.bonus_hand == 0
        assert game.hand_number == 1
        assert game.east_seat == 1
        assert game.players[0].seat_wind == WindType.NORTH
        assert not game.game_finished

    def test_goulash_repeats_deal(self):
        """Test an exhausted wall counts as a bonus hand for East"""
        rules = RuleSet(name="Repeat", num_hands=2, hands_per_round=4, max_bonus_hands=1,
                        bonus_tiles=False, auto_deal=False)
        game = make_game(rules)
        game.wall.tiles = []
        game.apply_move(Move.discard_tile(game.players[0].hand[0]))
        for _ in range(3):
            game.apply_move(Move.pass_move())

        assert game.last_result.goulash
        assert game.bonus_hand == 1
        assert game.east_seat == 0

    def test_won_on_replacement(self):
        """Test a self-pick after a kong's replacement draw"""
        game = make_game()
        set_hand(game, 0, [bam(7)] * 4 + [char(i) for i in range(1, 10)] + [WHITE_DRAGON])
        game.wall.tiles.insert(0, WHITE_DRAGON)

        assert game.apply_move(Move.attempt(Meld([bam(7)] * 4), bam(7)))
        for _ in range(3):
            assert game.apply_move(Move.pass_move())
        assert game.replacement_draws == 1
        assert not game.heavenly

        assert game.apply_move(Move.declare_mahjong())
        for _ in range(3):
            assert game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 0
        assert result.self_pick
        assert result.flags["won_on_replacement"]
        assert not result.flags["won_on_double_replacement"]
        assert not result.flags["heavenly_hand"]
        assert 1 <= result.fan < LIMIT

    def test_won_on_double_replacement(self):
        """Test a self-pick after two kongs in a row is a limit hand"""
        game = make_game()
        set_hand(game, 0, [bam(7)] * 4 + [dot(2)] * 3 + [char(i) for i in range(1, 7)]
                 + [WHITE_DRAGON])
        game.wall.tiles.insert(0, WHITE_DRAGON)
        game.wall.tiles.insert(0, dot(2))

        assert game.apply_move(Move.attempt(Meld([bam(7)] * 4), bam(7)))
        for _ in range(3):
            assert game.apply_move(Move.pass_move())
        assert game.players[0].hand.count(dot(2)) == 4

        assert game.apply_move(Move.attempt(Meld([dot(2)] * 4), dot(2)))
        for _ in range(3):
            assert game.apply_move(Move.pass_move())
        assert game.replacement_draws == 2

        assert game.apply_move(Move.declare_mahjong())
        for _ in range(3):
            assert game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 0
        assert result.flags["won_on_replacement"]
        assert result.flags["won_on_double_replacement"]
        assert result.fan == LIMIT

    def test_replacement_count_resets_on_discard(self):
        """Test a discard after a kong clears the replacement count"""
        game = make_game()
        set_hand(game, 0, [bam(7)] * 4 + [char(i) for i in range(1, 10)] + [WHITE_DRAGON])
        game.apply_move(Move.attempt(Meld([bam(7)] * 4), bam(7)))
        pass_all(game)
        assert game.replacement_draws == 1

        game.apply_move(Move.discard_tile(WHITE_DRAGON))
        pass_all(game)
        assert game.active_player == 1
        assert game.replacement_draws == 0

    def test_earthly_latch_clears_on_first_pass(self):
        """Test a discard win after the first passed discard is not earthly"""
        game = make_game()
        assert game.earthly and game.heavenly

        game.apply_move(Move.discard_tile(game.players[0].hand[0]))
        pass_all(game)
        assert not game.earthly
        assert not game.heavenly

        set_hand(game, 1, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 3, list(WAITING_ON_5D))
        game.apply_move(Move.discard_tile(dot(5)))
        game.apply_move(Move.pass_move())
        assert game.apply_move(Move.declare_mahjong(dot(5)))
        game.apply_move(Move.pass_move())

        result = game.last_result
        assert result.winner == 3
        assert result.discarder == 1
        assert not result.flags["earthly_hand"]
        assert result.fan == 1

    def test_invalid_meld_with_mahjong_rejected(self):
        """Test a Mahjong claim naming a malformed meld is illegal"""
        game = make_game()
        set_hand(game, 0, [char(1), char(2), char(3), char(4), char(5), char(6), char(7), char(8),
                           char(9), EAST, EAST, SOUTH, WEST, dot(5)])
        set_hand(game, 1, list(WAITING_ON_5D))

        game.apply_move(Move.discard_tile(dot(5)))
        bad = Move.attempt(Meld([dot(5), bam(1), char(9)]), dot(5), mahjong=True)
        assert not game.is_valid(bad)
        assert not game.apply_move(bad)
        assert game.sub_active_player == 1
        assert bad not in game.get_valid_moves()

        good = Move.attempt(Meld([dot(3), dot(4), dot(5)]), dot(5), mahjong=True)
        assert game.is_valid(good)
        assert game.apply_move(Move.declare_mahjong(dot(5)))

    def test_tiles_conserved(self):
        """Test every tile stays in the wall, a discard pile, a hand, a meld or a bonus set"""
        rules = RuleSet(name="Count", num_hands=1, hands_per_round=1, max_bonus_hands=0,
                        bonus_tiles=True, auto_deal=False)
        game = make_game(rules, seed=3)
        rng = np.random.default_rng(0)

        def total() -> int:
            held = sum(p.num_tiles + len(p.bonus_tiles) for p in game.players)
            return game.wall.remaining + len(game.discard_pile) + held

        steps = 0
        while not game.hand_finished:
            assert total() == 144
            moves = game.get_valid_moves()
            assert game.apply_move(moves[rng.integers(len(moves))])
            steps += 1
            assert steps < 2000

        assert total() == 144

    def test_init_hand_after_game_over(self):
        """Test dealing a finished game is an error"""
        game = make_game()
        game.wall.tiles = []
        game.apply_move(Move.discard_tile(game.players[0].hand[0]))
        for _ in range(3):
            game.apply_move(Move.pass_move())

        with pytest.raises(RuntimeError):
            game.init_hand()

    def test_wrong_player_count(self):
        with pytest.raises(ValueError):
            GameState(TEST_RULES, players=[PlayerState(0), PlayerState(1)])


class TestCloning:
    """Test value-based cloning of the game state"""

    def test_clone_equals_original(self):
        game = make_game()
        clone = game.copy()
        assert clone == game
        assert clone is not game

    def test_clone_mid_trick(self):
        """Test cloning with pending moves in the buffer"""
        game = make_game()
        game.apply_move(Move.discard_tile(game.players[0].hand[0]))
        game.apply_move(Move.pass_move())

        clone = game.copy()
        assert clone == game
        assert clone.available_tile == game.available_tile

    def test_clone_is_independent(self):
        """Test changes to a clone never reach the original"""
        game = make_game()
        snapshot = game.copy()
        clone = game.copy()

        clone.apply_move(Move.discard_tile(clone.players[0].hand[0]))
        for _ in range(3):
            clone.apply_move(Move.pass_move())

        assert clone != game
        assert game == snapshot

    def test_clones_replay_identically(self):
        """Test the random generator state travels with the clone"""
        game = make_game()
        clone = game.copy()
        assert game.rng.integers(1000) == clone.rng.integers(1000)

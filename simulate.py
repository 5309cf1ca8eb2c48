#!/usr/bin/env python3
"""
Simulate Fan Mahjong games between agents.

Usage:
    python simulate.py --games 10 --agents greedy random random random
    python simulate.py --rules quick --agents alphabeta greedy montecarlo random --seed 7
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

sys.path.insert(0, str(Path(__file__).parent))

from fan_mahjong.game import GameState
from fan_mahjong.player import PlayerState, Controller
from fan_mahjong.rules import get_rules, RuleSet
from fan_mahjong.tiles import WindType
from agents import make_agent

logger = logging.getLogger("simulate")

# Safety limit on moves per game
MAX_MOVES = 200000


def play_game(rules: RuleSet, agent_names: List[str], seed: Optional[int] = None) -> Dict:
    """
    Play one full game with AI-controlled seats.

    Returns:
        Dictionary with final scores, wins per seat and goulash count
    """
    players = []
    for seat, name in enumerate(agent_names):
        agent_seed = None if seed is None else seed * 10 + seat
        players.append(PlayerState(
            seat,
            WindType(seat),
            score=rules.starting_score,
            controller=Controller.ai(make_agent(name, seed=agent_seed)),
        ))

    state = GameState(rules, players=players, seed=seed)
    wins = [0] * GameState.NUM_PLAYERS
    goulash = 0
    hands = 0

    moves = 0
    while not state.game_finished and moves < MAX_MOVES:
        if state.hand_finished:
            state.init_hand()
            continue

        result_before = state.last_result
        controller = state.players[state.sub_active_player].controller
        if not controller.is_ai:
            raise RuntimeError(f"Seat {state.sub_active_player} has no agent to play it")
        move = controller.agent.act(state)
        if not state.apply_move(move):
            logger.warning(f"Seat {state.sub_active_player} chose an illegal move: {move}")
            state.apply_move(state.get_valid_moves()[0])
        moves += 1

        result = state.last_result
        if result is not None and result is not result_before:
            hands += 1
            if result.goulash:
                goulash += 1
            else:
                wins[result.winner] += 1

    if moves >= MAX_MOVES:
        logger.warning("Move limit reached, game stopped early")

    return {
        "scores": [p.score for p in state.players],
        "wins": wins,
        "goulash": goulash,
        "hands": hands,
    }


def main():
    parser = argparse.ArgumentParser(description="Simulate Fan Mahjong games between agents")
    parser.add_argument("--games", type=int, default=1, help="Number of games to play")
    parser.add_argument("--agents", nargs=4, default=["greedy", "random", "random", "random"],
                        metavar="AGENT",
                        help="Four agents: random, greedy, alphabeta or montecarlo")
    parser.add_argument("--rules", type=str, default="quick",
                        choices=["default", "quick", "single"], help="Rule set")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--verbose", action="store_true", help="Log every hand")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    rules = get_rules(args.rules)
    total_scores = [0] * GameState.NUM_PLAYERS
    total_wins = [0] * GameState.NUM_PLAYERS

    print("=" * 60)
    print(f"Fan Mahjong simulation: {args.games} game(s), {rules.name} rules")
    print(f"Agents: {', '.join(args.agents)}")
    print("=" * 60)

    for game_idx in range(args.games):
        seed = None if args.seed is None else args.seed + game_idx
        result = play_game(rules, args.agents, seed=seed)
        for seat in range(GameState.NUM_PLAYERS):
            total_scores[seat] += result["scores"][seat]
            total_wins[seat] += result["wins"][seat]
        print(f"Game {game_idx + 1}: scores {result['scores']}, wins {result['wins']}, "
              f"goulash {result['goulash']}/{result['hands']}")

    print("-" * 60)
    for seat, name in enumerate(args.agents):
        print(f"Seat {seat} ({name:>10}): total score {total_scores[seat]:>7}, wins {total_wins[seat]}")


if __name__ == "__main__":
    main()

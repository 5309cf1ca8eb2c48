"""
Fan Mahjong Agents
"""

from .random_agent import RandomAgent, GreedyAgent
from .search import alpha_beta_search, uniform_monte_carlo_search
from .search_agent import AlphaBetaAgent, MonteCarloAgent, evaluate_seat


def make_agent(name: str, seed=None):
    """Create an agent by name"""
    agents = {
        "random": RandomAgent,
        "greedy": GreedyAgent,
        "alphabeta": AlphaBetaAgent,
        "montecarlo": MonteCarloAgent,
    }
    name = name.lower()
    if name not in agents:
        raise ValueError(f"Unknown agent: {name}. Available: {list(agents.keys())}")
    return agents[name](seed=seed)


__all__ = [
    "RandomAgent",
    "GreedyAgent",
    "AlphaBetaAgent",
    "MonteCarloAgent",
    "alpha_beta_search",
    "uniform_monte_carlo_search",
    "evaluate_seat",
    "make_agent",
]

"""
Generic game-tree search

Both searches only see a game through four callables:
- enumerator(state) -> legal actions (empty means terminal)
- applier(state, action) -> new state, leaving `state` untouched
- evaluator(state) -> integer desirability
- maximising(initial_state, state) -> whether to maximise at `state`
"""

from typing import Callable, List, Optional, Sequence, TypeVar

import numpy as np

S = TypeVar("S")
A = TypeVar("A")

Enumerator = Callable[[S], Sequence[A]]
Applier = Callable[[S, A], S]
Evaluator = Callable[[S], int]
Maximising = Callable[[S, S], bool]

NEG_INF = float("-inf")
POS_INF = float("inf")


def _pick(best: List[A], rng: np.random.Generator) -> A:
    return best[int(rng.integers(len(best)))]


def alpha_beta_search(
    state: S,
    max_depth: int,
    evaluator: Evaluator,
    enumerator: Enumerator,
    applier: Applier,
    maximising: Maximising,
    rng: Optional[np.random.Generator] = None,
) -> Optional[A]:
    """
    Choose an action by depth-limited minimax with alpha-beta pruning.

    The caller is the maximising side at the root. A single legal action is
    returned without searching; ties among the best root actions are broken
    with `rng`.

    Returns:
        The chosen action, or None if `state` is terminal or max_depth < 1
    """
    if max_depth < 1:
        return None
    actions = list(enumerator(state))
    if not actions:
        return None
    if len(actions) == 1:
        return actions[0]
    if rng is None:
        rng = np.random.default_rng()

    best_actions = []
    best_val = NEG_INF
    for action in actions:
        # Values are integers, so a window just below best_val keeps ties exact
        val = _alpha_beta(state, applier(state, action), max_depth - 1, evaluator,
                          enumerator, applier, maximising, best_val - 1, POS_INF)
        if val < best_val:
            continue
        if val > best_val:
            best_actions = []
            best_val = val
        best_actions.append(action)

    return _pick(best_actions, rng)


def _alpha_beta(init: S, state: S, depth: int, evaluator: Evaluator, enumerator: Enumerator,
                applier: Applier, maximising: Maximising, alpha: float, beta: float) -> float:
    if depth == 0:
        return evaluator(state)
    actions = list(enumerator(state))
    if not actions:
        return evaluator(state)

    if maximising(init, state):
        value = NEG_INF
        for action in actions:
            value = max(value, _alpha_beta(init, applier(state, action), depth - 1, evaluator,
                                           enumerator, applier, maximising, alpha, beta))
            alpha = max(alpha, value)
            if alpha >= beta:
                break
        return value

    value = POS_INF
    for action in actions:
        value = min(value, _alpha_beta(init, applier(state, action), depth - 1, evaluator,
                                       enumerator, applier, maximising, alpha, beta))
        beta = min(beta, value)
        if alpha >= beta:
            break
    return value


def uniform_monte_carlo_search(
    state: S,
    samples: int,
    cloner: Callable[[S], S],
    enumerator: Enumerator,
    applier: Applier,
    evaluator: Evaluator,
    rng: Optional[np.random.Generator] = None,
    max_rollout_depth: Optional[int] = None,
) -> Optional[A]:
    """
    Choose the action whose uniformly random playouts score best on average.

    Each root action is followed by `samples` rollouts that pick uniformly
    among legal actions until a terminal state (or `max_rollout_depth`
    actions). Ties between root actions are broken with `rng`.

    Returns:
        The chosen action, or None if `state` is terminal
    """
    actions = list(enumerator(state))
    if not actions:
        return None
    if len(actions) == 1:
        return actions[0]
    if rng is None:
        rng = np.random.default_rng()

    values = []
    for action in actions:
        start = applier(cloner(state), action)
        total = sum(_rollout(cloner(start), enumerator, applier, evaluator, rng, max_rollout_depth)
                    for _ in range(samples))
        values.append(total)

    best_val = max(values)
    best_actions = [a for a, v in zip(actions, values) if v == best_val]
    return _pick(best_actions, rng)


def _rollout(state: S, enumerator: Enumerator, applier: Applier, evaluator: Evaluator,
             rng: np.random.Generator, max_depth: Optional[int]) -> int:
    """Play random actions until a terminal state and evaluate it"""
    depth = 0
    while max_depth is None or depth < max_depth:
        actions = list(enumerator(state))
        if not actions:
            break
        state = applier(state, _pick(actions, rng))
        depth += 1
    return evaluator(state)

from __future__ import annotations

import random
from typing import Tuple

Tour = Tuple[int, ...]


def tour_cost(tour, dist) -> float:
    """Length of the closed tour; city ids are 1-based, matrix rows 0-based."""
    if len(tour) == 0:
        raise ValueError("tour must contain at least one city")
    cost = 0.0
    for a, b in zip(tour[:-1], tour[1:]):
        cost += dist[a - 1][b - 1]
    # back to the start
    cost += dist[tour[-1] - 1][tour[0] - 1]
    return float(cost)


def random_tour(n: int, rng: random.Random | None = None) -> Tour:
    r = list(range(1, n + 1))
    (rng or random).shuffle(r)
    return tuple(r)


def swap_positions(tour, i: int, j: int) -> Tour:
    new = list(tour)
    new[i], new[j] = new[j], new[i]
    return tuple(new)


def is_valid_tour(tour, n: int) -> bool:
    return len(tour) == n and set(tour) == set(range(1, n + 1))

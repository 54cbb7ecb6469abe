import time

from utils.tour import swap_positions, tour_cost


def neighbourhood_size(n: int) -> int:
    return n * (n - 1) // 2


def shortest_in_neighbourhood(route, dist, deadline=None, on_neighbour=None):
    """
    Best tour reachable from `route` by exchanging the cities at two positions.

    Pairs are tried in order (0,1), (0,2), ..., (1,2), ...; a candidate only
    replaces the incumbent when strictly shorter, so on equal cost the earlier
    one (or `route` itself) is kept. `deadline` is a time.perf_counter() value
    after which the scan stops with what it has.
    """
    route = tuple(route)
    best = route
    best_len = tour_cost(route, dist)
    n = len(route)

    k = 0
    for i in range(n):
        if deadline is not None and time.perf_counter() >= deadline:
            break
        for j in range(i + 1, n):
            cand = swap_positions(route, i, j)
            cand_len = tour_cost(cand, dist)
            k += 1
            if on_neighbour is not None:
                on_neighbour(k, cand, cand_len)
            if cand_len < best_len:
                best, best_len = cand, cand_len
    return best

# src/solver_ils.py

import json
import pathlib
import random
import sys
import time
from dataclasses import dataclass

from utils.local_swap import shortest_in_neighbourhood
from utils.tour import Tour, is_valid_tour, random_tour, tour_cost
from utils.tsp_parser import check_square, read_tsp

DESCEND = "descend"
RESTART = "restart"


@dataclass(frozen=True)
class SearchState:
    current: Tour   # next route to explore from
    best: Tour      # best route seen during the run


@dataclass
class IterationReport:
    iteration: int
    start: Tour
    start_cost: float
    local_minimum: Tour
    local_minimum_cost: float
    action: str
    state: SearchState
    best_cost: float


def initial_state(n, rng=None) -> SearchState:
    route = random_tour(n, rng)
    return SearchState(current=route, best=route)


def step(state: SearchState, dist, rng=None, iteration=0, deadline=None,
         on_neighbour=None) -> IterationReport:
    """One descend-or-restart move of the iterated local search."""
    start = state.current
    start_cost = tour_cost(start, dist)
    local = shortest_in_neighbourhood(start, dist, deadline=deadline,
                                      on_neighbour=on_neighbour)
    local_cost = tour_cost(local, dist)

    if local_cost < start_cost:
        best = state.best
        if local_cost < tour_cost(best, dist):
            best = local
        new_state = SearchState(current=local, best=best)
        action = DESCEND
    else:
        # stuck in a local minimum: start over from a random route
        new_state = SearchState(current=random_tour(len(dist), rng), best=state.best)
        action = RESTART

    return IterationReport(
        iteration=iteration,
        start=start,
        start_cost=start_cost,
        local_minimum=local,
        local_minimum_cost=local_cost,
        action=action,
        state=new_state,
        best_cost=tour_cost(new_state.best, dist),
    )


def iterated_local_search(dist, time_limit_ms, rng=None, on_iteration=None,
                          should_stop=None, scan_deadline=False,
                          on_neighbour=None) -> SearchState:
    """
    Runs descend/restart iterations until `time_limit_ms` of wall clock is used.

    The clock (and `should_stop`) is checked between iterations only; with
    `scan_deadline` the neighbourhood scan itself is also cut at the limit,
    and a scan cut before finding anything shorter counts as a restart.
    """
    dist = check_square(dist)
    rng = rng or random.Random()

    t0 = time.perf_counter()
    deadline = t0 + time_limit_ms / 1000.0
    state = initial_state(len(dist), rng)

    iteration = 0
    while (time.perf_counter() - t0) * 1000.0 < time_limit_ms:
        if should_stop is not None and should_stop():
            break
        iteration += 1
        report = step(state, dist, rng, iteration,
                      deadline=deadline if scan_deadline else None,
                      on_neighbour=on_neighbour)
        state = report.state
        if on_iteration is not None:
            on_iteration(report)
    return state


def format_report(report: IterationReport):
    return [
        f"Starting route for neighbourhood: {list(report.start)} = {report.start_cost}",
        f"Shortest in neighbourhood: {list(report.local_minimum)} = {report.local_minimum_cost}",
        f"Best route so far: {list(report.state.best)} = {report.best_cost}",
    ]


def format_neighbour(k, cand, cost):
    return f"Neighbour {k}: {list(cand)} = {cost}"


def solve_matrix(dist, time_limit_ms=2000, seed=None, verbose=False,
                 on_iteration=None, should_stop=None, on_neighbour=None,
                 neighbours=False, scan_deadline=False):
    """
    `verbose` prints the per-iteration lines and the final answer,
    `neighbours` additionally prints every candidate of every scan.
    """
    dist = check_square(dist)
    rng = random.Random(seed)
    stats = {"iterations": 0, "restarts": 0, "improvements": 0}

    def _track(report):
        stats["iterations"] += 1
        if report.action == RESTART:
            stats["restarts"] += 1
        else:
            stats["improvements"] += 1
        if verbose:
            print("\n".join(format_report(report)))
        if on_iteration is not None:
            on_iteration(report)

    def _neighbour(k, cand, cost):
        if neighbours:
            print(format_neighbour(k, cand, cost))
        if on_neighbour is not None:
            on_neighbour(k, cand, cost)

    t0 = time.time()
    state = iterated_local_search(
        dist, time_limit_ms, rng=rng, on_iteration=_track, should_stop=should_stop,
        scan_deadline=scan_deadline,
        on_neighbour=_neighbour if (neighbours or on_neighbour is not None) else None)
    best = state.best
    best_f = tour_cost(best, dist)
    if not is_valid_tour(best, len(dist)):
        raise RuntimeError(f"search returned an invalid tour: {best}")
    if verbose:
        print(f"ANSWER: {list(best)} = {best_f}")

    return {
        "algo": "ILS (2-opt swap)",
        "cities": len(dist),
        "distance": best_f,
        "tour": list(best),
        "iterations": stats["iterations"],
        "restarts": stats["restarts"],
        "improvements": stats["improvements"],
        "time_sec": round(time.time() - t0, 2),
        "seed": seed,
    }


def solve(file_path, time_limit_ms=2000, seed=None, verbose=False,
          on_iteration=None, should_stop=None, on_neighbour=None,
          neighbours=False, scan_deadline=False):
    data = read_tsp(file_path)
    result = solve_matrix(data["dist_matrix"], time_limit_ms, seed, verbose,
                          on_iteration=on_iteration, should_stop=should_stop,
                          on_neighbour=on_neighbour, neighbours=neighbours,
                          scan_deadline=scan_deadline)
    return {"file": pathlib.Path(file_path).name, **result}


if __name__ == "__main__":
    # usage: solver_ils.py [file] [time_limit_ms] [--verbose] [--neighbours] [--scan-deadline]
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    fp = args[0] if len(args) > 0 else "data/cities/cities10.csv"
    try:
        ms = int(args[1]) if len(args) > 1 else 2000
        result = solve(fp, ms,
                       verbose="--verbose" in sys.argv or "--neighbours" in sys.argv,
                       neighbours="--neighbours" in sys.argv,
                       scan_deadline="--scan-deadline" in sys.argv)
    except (ValueError, FileNotFoundError) as e:
        sys.exit(f"error: {e}")
    print(json.dumps(result, indent=2))

# src/solver_baseline.py

import pathlib, sys, time, json
import numpy as np
from utils.tsp_parser import read_tsp
from utils.tour import tour_cost
from ortools.constraint_solver import pywrapcp, routing_enums_pb2

# OR-Tools works on integer arc costs
SCALE = 1000


def solve(file_path: str, sec_limit: int = 5, fs_strategy: str = "PATH_CHEAPEST_ARC"):
    data = read_tsp(file_path)
    dist = data["dist_matrix"]
    n = data["dimension"]

    int_dist = np.rint(dist * SCALE).astype(int)

    mgr = pywrapcp.RoutingIndexManager(n, 1, 0)
    routing = pywrapcp.RoutingModel(mgr)

    transit_cb = routing.RegisterTransitCallback(
        lambda i, j: int(int_dist[mgr.IndexToNode(i)][mgr.IndexToNode(j)])
    )
    routing.SetArcCostEvaluatorOfAllVehicles(transit_cb)

    strat_map = {
        "PATH_CHEAPEST_ARC": routing_enums_pb2.FirstSolutionStrategy.PATH_CHEAPEST_ARC,
        "SAVINGS": routing_enums_pb2.FirstSolutionStrategy.SAVINGS,
        "CHRISTOFIDES": routing_enums_pb2.FirstSolutionStrategy.CHRISTOFIDES,
        "AUTOMATIC": routing_enums_pb2.FirstSolutionStrategy.AUTOMATIC,
    }
    # unknown strategy -> AUTOMATIC
    fs_enum = strat_map.get(fs_strategy.upper(), routing_enums_pb2.FirstSolutionStrategy.AUTOMATIC)

    search_params = pywrapcp.DefaultRoutingSearchParameters()
    search_params.first_solution_strategy = fs_enum
    search_params.local_search_metaheuristic = (
        routing_enums_pb2.LocalSearchMetaheuristic.GUIDED_LOCAL_SEARCH
    )
    search_params.time_limit.seconds = sec_limit

    t0 = time.time()
    sol = routing.SolveWithParameters(search_params)
    t1 = time.time()

    if sol is None:
        raise RuntimeError("No solution found within the time limit")

    tour = []
    idx = routing.Start(0)
    while not routing.IsEnd(idx):
        tour.append(mgr.IndexToNode(idx) + 1)  # 1-based city ids
        idx = sol.Value(routing.NextVar(idx))

    return {
        "file": pathlib.Path(file_path).name,
        "algo": "OR-Tools",
        "cities": n,
        "distance": tour_cost(tour, dist),
        "tour": tour,
        "time_sec": round(t1 - t0, 2),
    }


if __name__ == "__main__":
    fp = sys.argv[1] if len(sys.argv) > 1 else "data/cities/cities10.csv"
    sec = int(sys.argv[2]) if len(sys.argv) > 2 else 5
    strat = sys.argv[3] if len(sys.argv) > 3 else "PATH_CHEAPEST_ARC"
    print(json.dumps(solve(fp, sec, strat), indent=2))

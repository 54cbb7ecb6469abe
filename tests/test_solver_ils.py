import json
import random
import runpy
import sys
import time
from pathlib import Path

import numpy as np
import pytest

import solver_ils
from solver_ils import (DESCEND, RESTART, SearchState, format_neighbour, format_report,
                        initial_state, iterated_local_search, solve, solve_matrix, step)
from utils.local_swap import neighbourhood_size
from utils.tour import is_valid_tour, tour_cost
from utils.tsp_parser import MatrixDimensionsError, distance_matrix

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
DATA_DIR = Path(__file__).resolve().parents[1] / "data" / "cities"


@pytest.fixture
def square():
    return distance_matrix([(0, 0), (0, 1), (1, 1), (1, 0)])


@pytest.fixture
def cloud():
    rng = np.random.default_rng(21)
    return distance_matrix(rng.uniform(0, 100, size=(10, 2)))


@pytest.fixture
def square_file(tmp_path):
    p = tmp_path / "square4.csv"
    p.write_text("A,0,0\nB,0,1\nC,1,1\nD,1,0\n")
    return p


def test_initial_state_current_is_best():
    state = initial_state(7, random.Random(0))
    assert state.current == state.best
    assert is_valid_tour(state.current, 7)


def test_step_descends_on_improvement(square):
    state = SearchState(current=(1, 3, 2, 4), best=(1, 3, 2, 4))
    report = step(state, square, random.Random(0), iteration=1)
    assert report.action == DESCEND
    assert report.state.current == report.local_minimum
    assert report.state.best == report.local_minimum
    assert report.best_cost == 4.0
    assert report.local_minimum_cost < report.start_cost


def test_step_keeps_better_best_on_descend():
    # hexagon: one swap fixes only one of the two defects of (2, 1, 3, 4, 6, 5)
    angles = np.arange(6) * np.pi / 3
    dist = distance_matrix(np.column_stack([np.cos(angles), np.sin(angles)]))
    best = (1, 2, 3, 4, 5, 6)
    report = step(SearchState(current=(2, 1, 3, 4, 6, 5), best=best), dist, random.Random(1))
    assert report.action == DESCEND
    assert report.state.current == report.local_minimum
    assert report.local_minimum_cost > tour_cost(best, dist)
    assert report.state.best == best


def test_step_restarts_at_local_minimum(square):
    state = SearchState(current=(1, 2, 3, 4), best=(1, 2, 3, 4))
    report = step(state, square, random.Random(0))
    assert report.action == RESTART
    assert report.state.best == (1, 2, 3, 4)
    assert is_valid_tour(report.state.current, 4)


def test_square_reaches_optimum(square):
    state = iterated_local_search(square, 50, rng=random.Random(3))
    assert tour_cost(state.best, square) == 4.0
    assert is_valid_tour(state.best, 4)


def test_best_cost_never_increases(cloud):
    costs = []
    iterated_local_search(cloud, 200, rng=random.Random(4),
                          on_iteration=lambda r: costs.append(r.best_cost))
    assert costs
    assert all(b <= a for a, b in zip(costs, costs[1:]))


def test_descend_and_restart_both_happen(cloud):
    actions = set()
    iterated_local_search(cloud, 300, rng=random.Random(5),
                          on_iteration=lambda r: actions.add(r.action))
    assert actions == {DESCEND, RESTART}


def test_zero_budget_runs_no_iterations(cloud):
    seen = []
    state = iterated_local_search(cloud, 0, rng=random.Random(6), on_iteration=seen.append)
    assert seen == []
    assert state.current == state.best
    assert is_valid_tour(state.best, 10)


def test_should_stop_ends_the_loop(cloud):
    seen = []
    iterated_local_search(cloud, 60_000, rng=random.Random(7),
                          on_iteration=seen.append, should_stop=lambda: len(seen) >= 3)
    assert len(seen) == 3
    assert [r.iteration for r in seen] == [1, 2, 3]


def test_non_square_matrix_fails_before_search():
    calls = []
    with pytest.raises(MatrixDimensionsError):
        iterated_local_search(np.zeros((3, 4)), 1000, on_iteration=calls.append)
    assert calls == []


def test_format_report(square):
    report = step(SearchState((1, 3, 2, 4), (1, 3, 2, 4)), square, random.Random(0), 1)
    lines = format_report(report)
    assert lines[0].startswith("Starting route for neighbourhood: [1, 3, 2, 4] = ")
    assert lines[1] == "Shortest in neighbourhood: [1, 2, 3, 4] = 4.0"
    assert lines[2] == "Best route so far: [1, 2, 3, 4] = 4.0"


def test_solve_matrix_counts(cloud):
    res = solve_matrix(cloud, 200, seed=8)
    assert res["iterations"] == res["restarts"] + res["improvements"]
    assert res["iterations"] > 0
    assert res["cities"] == 10
    assert is_valid_tour(res["tour"], 10)
    assert res["distance"] == pytest.approx(tour_cost(res["tour"], cloud))


def test_solve_file(square_file):
    res = solve(square_file, 50, seed=0)
    assert res["file"] == "square4.csv"
    assert res["distance"] == 4.0
    assert sorted(res["tour"]) == [1, 2, 3, 4]
    json.dumps(res)


def test_solve_verbose_prints_answer(square_file, capsys):
    res = solve(square_file, 20, seed=1, verbose=True)
    out = capsys.readouterr().out
    assert "Best route so far:" in out
    assert out.strip().splitlines()[-1] == f"ANSWER: {res['tour']} = 4.0"


def test_solve_missing_file():
    with pytest.raises(FileNotFoundError):
        solve("nope.csv", 10)


def test_sample_instance_is_valid():
    res = solver_ils.solve(DATA_DIR / "cities10.csv", 100, seed=0)
    assert res["cities"] == 10
    assert is_valid_tour(res["tour"], 10)


def test_neighbour_hook_sees_every_candidate_each_iteration():
    per_iteration = []
    counts = []

    def on_neighbour(k, cand, cost):
        assert is_valid_tour(cand, 10)
        counts.append(k)

    def on_iteration(report):
        per_iteration.append(list(counts))
        counts.clear()

    res = solve(DATA_DIR / "cities10.csv", 100, seed=3,
                on_neighbour=on_neighbour, on_iteration=on_iteration)
    assert len(per_iteration) == res["iterations"] > 0
    for ks in per_iteration:
        assert ks == list(range(1, neighbourhood_size(10) + 1))


def test_neighbours_flag_prints_candidates(square_file, capsys):
    solve(square_file, 20, seed=2, verbose=True, neighbours=True)
    out = capsys.readouterr().out.splitlines()
    neighbour_lines = [line for line in out if line.startswith("Neighbour ")]
    assert neighbour_lines
    assert neighbour_lines[0].startswith("Neighbour 1: [")
    assert any(line.startswith("Neighbour 6: ") for line in neighbour_lines)
    assert out[-1].startswith("ANSWER: ")


def test_format_neighbour():
    assert format_neighbour(3, (2, 1, 3), 6.5) == "Neighbour 3: [2, 1, 3] = 6.5"


def test_scan_deadline_keeps_large_instance_on_budget():
    rng = np.random.default_rng(200)
    dist = distance_matrix(rng.uniform(0, 1000, size=(200, 2)))
    costs = []
    t0 = time.perf_counter()
    state = iterated_local_search(dist, 150, rng=random.Random(9), scan_deadline=True,
                                  on_iteration=lambda r: costs.append(r.best_cost))
    elapsed = time.perf_counter() - t0
    # one full 200-city scan takes far longer than the budget
    assert elapsed < 0.15 + 0.5
    assert is_valid_tour(state.best, 200)
    assert costs
    assert all(b <= a for a, b in zip(costs, costs[1:]))
    assert costs[-1] == pytest.approx(tour_cost(state.best, dist))


def test_scan_deadline_through_solve_matrix():
    rng = np.random.default_rng(201)
    dist = distance_matrix(rng.uniform(0, 1000, size=(200, 2)))
    res = solve_matrix(dist, 100, seed=4, scan_deadline=True)
    assert res["iterations"] >= 1
    assert res["time_sec"] < 0.6
    assert is_valid_tour(res["tour"], 200)


def run_cli(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["solver_ils.py", *map(str, argv)])
    runpy.run_path(str(SRC_DIR / "solver_ils.py"), run_name="__main__")


def test_cli_missing_file_exits_with_message(monkeypatch):
    with pytest.raises(SystemExit) as exc:
        run_cli(monkeypatch, "no/such/cities.csv", 10)
    assert "no/such/cities.csv" in str(exc.value.code)


def test_cli_bad_record_exits_with_message(monkeypatch, tmp_path):
    p = tmp_path / "bad.csv"
    p.write_text("A,0,0\nB,x,1\n")
    with pytest.raises(SystemExit) as exc:
        run_cli(monkeypatch, p, 10)
    assert "bad coordinate" in str(exc.value.code)


def test_cli_prints_json(monkeypatch, square_file, capsys):
    run_cli(monkeypatch, square_file, 20)
    res = json.loads(capsys.readouterr().out)
    assert res["distance"] == 4.0

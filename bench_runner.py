import time, pathlib
import sys, os
sys.path.append(os.path.join(os.path.dirname(__file__), "src"))
from utils.io_runs import save_run
from utils.helpers import write_json, gap_percent
from solver_ils import solve as ils
from solver_baseline import solve as ort


DATA = pathlib.Path("data/cities")
ALGOS = {
    "ILS-2s"  : lambda fp, seed: ils(fp, 2000, seed),
    "ILS-10s" : lambda fp, seed: ils(fp, 10000, seed),
    "OR-Tools": lambda fp, seed: ort(fp, 5),
}

def run_all(pattern="*.csv", seeds=(0, 1, 2)):
    out = pathlib.Path("runs")
    out.mkdir(exist_ok=True)
    summary = []
    for csv in sorted(DATA.glob(pattern)):
        rows = []
        for name, fn in ALGOS.items():
            # OR-Tools is deterministic, one run is enough
            for seed in (seeds if name.startswith("ILS") else seeds[:1]):
                t0 = time.time()
                res = fn(csv, seed)
                res["algo"] = name
                res["sec"]  = round(time.time()-t0,2)
                save_run(res)                        # -> runs/run_<id>.json
                print(csv.name, name, seed, round(res["distance"], 2))
                rows.append(res)
        ref = min((r["distance"] for r in rows if r["algo"] == "OR-Tools"), default=None)
        for r in rows:
            r["gap_%"] = gap_percent(r["distance"], ref)
        summary.extend(rows)
    write_json(summary, "outputs/summary.json")
    return summary

if __name__ == "__main__":
    run_all()

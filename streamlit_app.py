# streamlit_app.py
import sys
from pathlib import Path

ROOT = Path(__file__).parent
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))

import streamlit as st
import matplotlib.pyplot as plt
import json
import pandas as pd
import io

from utils.io_runs import save_run, load_runs
from utils.helpers import gap_percent
from utils.tsp_parser import read_tsp
from utils.local_swap import neighbourhood_size

from solver_ils      import solve as solve_ils
from solver_baseline import solve as solve_ort

DATA_DIR = ROOT / "data" / "cities"

ALGO_FUNCS = {
    "Iterated Local Search (2-opt swap)": solve_ils,
    "OR-Tools": solve_ort,
}


def plot_tour(coords, tour, labels=None, title=""):
    fig, ax = plt.subplots(figsize=(6, 6))
    xs, ys = zip(*coords.values())
    ax.scatter(xs, ys, c='black', s=10)
    for i, (x, y) in coords.items():
        ax.text(x, y, str(labels[i] if labels else i), color=('red' if i == tour[0] else 'black'), fontsize=8)
    # closed route: back to the first city
    closed = list(tour) + [tour[0]]
    rx, ry = zip(*(coords[i] for i in closed))
    ax.plot(rx, ry, linewidth=1.5)
    ax.grid(True)
    ax.set_title(title)
    return fig


def stop_requested():
    return bool(st.session_state.get("stop_flag"))


st.sidebar.title("TSP Solver")

run_single = st.sidebar.checkbox("Run one algorithm")
run_benchmark = st.sidebar.checkbox("Compare algorithms")

bench_files = sorted(f.name for f in DATA_DIR.glob("*.csv"))
file_choice = st.selectbox("City file", bench_files)
ms_limit = st.number_input("Time limit (ms)", min_value=100, max_value=600_000, value=2000, step=100)
seed = st.number_input("Seed (-1 = random)", min_value=-1, value=-1, step=1)
seed = None if seed < 0 else int(seed)

if run_single:
    st.session_state.pop("benchmark", None)
    st.subheader("Single run")

    algo_name = st.selectbox("Algorithm", list(ALGO_FUNCS.keys()))
    fs_strategy = None
    if algo_name == "OR-Tools":
        fs_strategy = st.selectbox("FirstSolutionStrategy", ["PATH_CHEAPEST_ARC", "SAVINGS", "CHRISTOFIDES", "AUTOMATIC"])
    scan_deadline = False
    if algo_name != "OR-Tools":
        scan_deadline = st.checkbox("Cut the last neighbourhood scan at the time limit")
    keep_run = st.checkbox("Save run to runs/")

    if st.button("Solve"):
        st.session_state["stop_flag"] = False
        with st.status("Running...", expanded=True) as status:
            st.button("Stop", key="stop_button_single", on_click=lambda: st.session_state.update({"stop_flag": True}))
            fp = DATA_DIR / file_choice
            try:
                if algo_name == "OR-Tools":
                    result = solve_ort(fp, max(1, int(ms_limit) // 1000), fs_strategy)
                else:
                    progress = st.empty()
                    n_cities = read_tsp(fp)["dimension"]

                    def show(report):
                        progress.write(f"iteration {report.iteration}: {report.action} after {neighbourhood_size(n_cities)} neighbours, best = {report.best_cost:.2f}")

                    result = solve_ils(fp, int(ms_limit), seed, on_iteration=show, should_stop=stop_requested,
                                       scan_deadline=scan_deadline)
                result["algo"] = algo_name
                if keep_run:
                    result["run_id"] = save_run(result, str(ROOT / "runs"))
                st.session_state["result"] = result
                status.update(label="Done", state="complete")
            except Exception as e:
                st.error(f"Algorithm failed: {e}")
                status.update(label="Failed", state="error")

if run_benchmark:
    st.session_state.pop("result", None)
    st.subheader("Comparison")

    selected_algos = st.multiselect("Algorithms:", options=list(ALGO_FUNCS), default=list(ALGO_FUNCS))
    repeats = st.number_input("ILS runs", min_value=1, max_value=20, value=3)

    if st.button("Run selected"):
        st.session_state["stop_flag"] = False
        with st.status("Comparing...", expanded=True) as status:
            st.button("Stop", key="stop_button_benchmark", on_click=lambda: st.session_state.update({"stop_flag": True}))
            fp = DATA_DIR / file_choice
            runs = []
            jobs = [(name, k) for name in selected_algos
                    for k in range(int(repeats) if name != "OR-Tools" else 1)]
            progress_bar = st.progress(0)

            for idx, (name, k) in enumerate(jobs, 1):
                if stop_requested():
                    st.warning("Stopped by user.")
                    break
                try:
                    status.update(label=f"{name} ({idx}/{len(jobs)})")
                    if name == "OR-Tools":
                        res = solve_ort(fp, max(1, int(ms_limit) // 1000))
                    else:
                        res = solve_ils(fp, int(ms_limit), None if seed is None else seed + k,
                                        should_stop=stop_requested)
                    res["algo"] = name
                    runs.append(res)
                except Exception as e:
                    st.warning(f"{name} failed: {e}")
                progress_bar.progress(idx / len(jobs))

            ref = min((r["distance"] for r in runs), default=None)
            for r in runs:
                r["gap_%"] = gap_percent(r["distance"], ref)
            st.session_state["benchmark"] = runs
            status.update(label="Comparison finished", state="complete")


result = st.session_state.get("result")
if result:
    st.subheader(f"{result['file']} | {result['cities']} cities | {result['distance']:.2f}")
    st.caption(f"{result['time_sec']} s | {result['algo']}")

    data = read_tsp(DATA_DIR / result["file"])
    st.pyplot(plot_tour(data["coords"], result["tour"], data["labels"], result["algo"]))

    st.subheader("JSON")
    st.json(result)
    json_bytes = json.dumps(result, ensure_ascii=False, indent=2).encode('utf-8')
    st.download_button(
        "Download JSON",
        json_bytes,
        file_name=f"{result['file']}-{result['distance']:.2f}-{result['time_sec']}s.json",
        mime="application/json"
    )

bench = st.session_state.get("benchmark")
if bench:
    st.subheader("Comparison result")
    df = pd.DataFrame(bench).drop(columns=["tour"], errors="ignore")
    st.dataframe(df)

    fig, ax = plt.subplots(figsize=(10, 6))
    df.groupby("algo")["distance"].min().plot.bar(ax=ax)
    ax.set_ylabel("Tour length")
    ax.set_xlabel("Algorithm")
    ax.set_title("Best tour length")
    ax.grid(True, linestyle='--', alpha=0.6)
    st.pyplot(fig)

    buf = io.BytesIO()
    fig.savefig(buf, format="png")
    latex = df.to_latex(index=False, float_format="%.2f")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.download_button("PNG", buf.getvalue(), file_name="benchmark_chart.png", mime="image/png")
    with col2:
        st.download_button("LaTeX", latex, file_name="benchmark.tex", mime="text/x-tex")
    with col3:
        st.download_button("JSON", json.dumps(bench, ensure_ascii=False, indent=2), file_name="benchmark.json", mime="application/json")


if st.sidebar.checkbox("Load saved runs"):
    st.subheader("Saved runs")
    uploaded = st.file_uploader("Run JSON files", accept_multiple_files=True, type="json")
    if uploaded:
        df_runs = load_runs(uploaded)
        st.dataframe(df_runs)

        fig2, ax2 = plt.subplots(figsize=(10, 6))
        df_runs.plot.bar(x='algo', y='distance', ax=ax2, legend=False)
        ax2.set_ylabel("Tour length")
        ax2.grid(True, linestyle="--", alpha=0.6)
        st.pyplot(fig2)

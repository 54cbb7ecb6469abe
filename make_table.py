import pandas as pd, pathlib, textwrap
import sys, os
sys.path.append(os.path.join(os.path.dirname(__file__), "src"))
from utils.io_runs import load_runs

df = load_runs(pathlib.Path("runs").glob("*.json"))
pivot = (df
         .groupby(["file","algo"],as_index=False)["distance"]
         .min()                       # best run per (file, algo)
         .pivot(index="file", columns="algo", values="distance")
         .sort_index())
latex = pivot.to_latex(float_format="%.2f")
pathlib.Path("tables").mkdir(exist_ok=True)
(pathlib.Path("tables") / "results.tex").write_text(
    textwrap.dedent(r"""
    % --- auto-generated ---
    \begin{table}[H]\centering
    \caption{TSP results: best tour length per instance}
    """) + latex + r"\end{table}"
)
print("LaTeX table saved -> tables/results.tex")

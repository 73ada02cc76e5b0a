"""Runner for Gamma-Poisson network simulation, estimation and power analysis.

Subcommands:
- simulate: draw X, D and A from the model and write them as CSV (or one NPZ).
- estimate: estimate network correlation and social differentiation from X and D.
- power:    estimate the power of a nodal regression. Pass one value each for
            --social-differentiation / --mu, or three (lower,
            median, upper confidence bounds) to get one estimate per value.

Outputs:
- estimate: summary.csv, summary.json and, with --qq-plot, qq_plot.png
- power:    power.json (one record per parameter value)

Example:
  python fit_network_correlation.py simulate --nodes 20 --mean-sampling 10 -S 0.25 --mu 0.5 --out ./sim
  python fit_network_correlation.py estimate --X ./sim/X.csv --D ./sim/D.csv --out ./fit
  python fit_network_correlation.py power --nodes 8 --effect 0.5 -S 1.6 1.78 2.0 --mu 0.274 --sampling 10

Environment defaults:
  GPN_SEED, GPN_NUM_SAMPLES, GPN_NUM_ITERS
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import os
from pathlib import Path

import numpy as np

from gamma_poisson_network import (
    estimate_correlation,
    load_matrix,
    plot_qq,
    power_nodereg,
    simulate_data,
)


def _env_int(name: str, default: int | None) -> int | None:
    value = os.getenv(name)
    return default if value in (None, "") else int(value)


def _write_matrix_csv(path: Path, matrix: np.ndarray, fmt: str = "%.6g"):
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, matrix, delimiter=",", fmt=fmt)


def _write_json(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _run_simulate(args) -> int:
    data = simulate_data(
        args.nodes,
        args.mean_sampling,
        args.social_differentiation,
        args.mu,
        directed=args.directed,
        rng=args.seed,
    )
    out_dir = Path(args.out)
    if args.npz:
        out_dir.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(out_dir / "simulated.npz", X=data.X, D=data.D, A=data.A)
    else:
        _write_matrix_csv(out_dir / "X.csv", data.X, fmt="%d")
        _write_matrix_csv(out_dir / "D.csv", data.D, fmt="%d")
        _write_matrix_csv(out_dir / "A.csv", data.A)
    print(f"Wrote simulated {args.nodes}-node network to: {out_dir.resolve()}")
    return 0


def _run_estimate(args) -> int:
    X = load_matrix(args.X, key="X")
    D = load_matrix(args.D, key="D")

    summary = estimate_correlation(
        X,
        D,
        directed=args.directed,
        ci=args.ci,
        num_samples=args.num_samples,
        diagnostic=args.qq_plot,
        rng=args.seed,
    )
    print(summary)

    out_dir = Path(args.out)
    table = summary.to_dict()
    rows = ["," + ",".join(["Estimate", "SE", "Lower CI", "Upper CI"])]
    for name, values in table.items():
        rows.append(",".join([name] + ["NA" if v is None else f"{v:.3g}" for v in values.values()]))
    out_dir.mkdir(parents=True, exist_ok=True)
    (out_dir / "summary.csv").write_text("\n".join(rows) + "\n", encoding="utf-8")

    _write_json(out_dir / "summary.json", {
        "ci": summary.ci,
        "n_dyads": summary.fit.n_dyads,
        "shape": summary.fit.shape,
        "rate": summary.fit.rate,
        "summary": table,
    })

    if summary.diagnostic is not None:
        plot_qq(summary.diagnostic, filename=str(out_dir / "qq_plot.png"))

    print(f"Wrote outputs to: {out_dir.resolve()}")
    return 0


def _expand_bounds(values: list[float], name: str) -> list[float]:
    if len(values) not in (1, 3):
        raise SystemExit(f"{name} takes one value or three (lower, median, upper), got {len(values)}")
    return values


def _run_power(args) -> int:
    S_values = _expand_bounds(args.social_differentiation, "--social-differentiation")
    mu_values = _expand_bounds(args.mu, "--mu")
    if len(S_values) == 3 and len(mu_values) == 1:
        mu_values = mu_values * 3
    elif len(mu_values) == 3 and len(S_values) == 1:
        S_values = S_values * 3

    sampling = load_matrix(args.sampling_matrix, key="D") if args.sampling_matrix else args.sampling

    results = []
    for S, mu in zip(S_values, mu_values):
        result = power_nodereg(
            args.nodes,
            args.effect,
            S,
            mu,
            sampling,
            metric=args.metric,
            directed=args.directed,
            sig_level=args.sig_level,
            num_iters=args.num_iters,
            rng=args.seed,
            scheduler=args.scheduler,
            progress=args.progress,
        )
        print(
            f"nodes={result.nodes} effect={result.effect} S={result.social_differentiation} "
            f"mu={result.interaction_rate} power={result.power:.3f} (se {result.standard_error:.3f})"
        )
        results.append({**dataclasses.asdict(result), "standard_error": result.standard_error})

    _write_json(Path(args.out) / "power.json", results)
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Gamma-Poisson network reliability and power analysis")
    p.add_argument("--seed", type=int, default=_env_int("GPN_SEED", None), help="Random seed.")
    sub = p.add_subparsers(dest="command", required=True)

    sim = sub.add_parser("simulate", help="Simulate X, D and A from the Gamma-Poisson model.")
    sim.add_argument("--nodes", type=int, required=True)
    sim.add_argument("--mean-sampling", type=float, required=True)
    sim.add_argument("-S", "--social-differentiation", type=float, required=True)
    sim.add_argument("--mu", type=float, required=True, help="Mean interaction rate.")
    sim.add_argument("--directed", action="store_true")
    sim.add_argument("--npz", action="store_true", help="Write one simulated.npz instead of CSVs.")
    sim.add_argument("--out", default="./outputs_sim")

    est = sub.add_parser("estimate", help="Estimate network correlation from X and D.")
    est.add_argument("--X", required=True, help="Interaction count matrix (CSV/TSV/NPY/NPZ).")
    est.add_argument("--D", required=True, help="Sampling time matrix (CSV/TSV/NPY/NPZ).")
    est.add_argument("--directed", action="store_true")
    est.add_argument("--ci", type=float, default=0.95)
    est.add_argument("--num-samples", type=int, default=_env_int("GPN_NUM_SAMPLES", 100_000))
    est.add_argument("--qq-plot", action="store_true", help="Write a QQ diagnostic plot.")
    est.add_argument("--out", default="./outputs_fit")

    pw = sub.add_parser("power", help="Power analysis for a nodal regression.")
    pw.add_argument("--nodes", type=int, required=True)
    pw.add_argument("--effect", type=float, required=True)
    pw.add_argument("-S", "--social-differentiation", type=float, nargs="+", required=True)
    pw.add_argument("--mu", type=float, nargs="+", required=True, help="Mean interaction rate.")
    group = pw.add_mutually_exclusive_group(required=True)
    group.add_argument("--sampling", type=float, help="Mean sampling time per dyad.")
    group.add_argument("--sampling-matrix", help="Sampling time matrix file.")
    pw.add_argument("--metric", default="strength",
                    choices=["strength", "eigenvector", "closeness", "betweenness"])
    pw.add_argument("--directed", action="store_true")
    pw.add_argument("--sig-level", type=float, default=0.05)
    pw.add_argument("--num-iters", type=int, default=_env_int("GPN_NUM_ITERS", 1000))
    pw.add_argument("--scheduler", choices=["synchronous", "threads", "processes"], default="synchronous")
    pw.add_argument("--progress", action="store_true")
    pw.add_argument("--out", default="./outputs_power")

    args = p.parse_args(argv)
    if args.command == "simulate":
        return _run_simulate(args)
    if args.command == "estimate":
        return _run_estimate(args)
    return _run_power(args)


if __name__ == "__main__":
    raise SystemExit(main())

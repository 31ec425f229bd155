"""
Huffman bit packing experiments: numeric codes vs exact-length codes

Runs repeated experiments over synthetic datasets and records how the two
packing modes compare

Outputs (in --outdir):
  - metrics.csv     (raw row per run per configuration)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --exp1_size_kb 64 --no_exp2 --no_exp3
  python experiments.py --outdir results --exp1_generators uniform256,zipf128 --dump_tree

Notes:
  "numeric" packs codes by their integer value only, so leading zero bits are
  dropped and code 0 is a single bit. "exact" packs each code at its full
  tree depth.
"""

from __future__ import annotations

import argparse
import bisect
import csv
import random
import statistics
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Sequence, Tuple

import matplotlib.pyplot as plt

import bitpack
import huffman as huff

PIPELINES = ("numeric", "exact")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


# Synthetic dataset generators

def _weighted_bytes(symbols: Sequence[int], weights: Sequence[float], size: int, seed: int) -> bytes:
    rng = random.Random(seed)
    total = sum(weights)
    cdf = []
    acc = 0.0
    for w in weights:
        acc += w / total
        cdf.append(acc)
    last = len(cdf) - 1
    return bytes(symbols[min(bisect.bisect_left(cdf, rng.random()), last)] for _ in range(size))

def gen_uniform(size: int, alphabet: int = 256, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.randrange(0, alphabet) for _ in range(size))

def gen_repetitive(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    rng = random.Random(seed)
    others = [i for i in range(256) if i != dominant]
    return bytes(dominant if rng.random() < dom_frac else rng.choice(others) for _ in range(size))

def gen_zipf_like(size: int, alphabet: int = 128, s: float = 1.2, seed: int = 0) -> bytes:
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _weighted_bytes(range(alphabet), weights, size, seed)

def gen_english_like(size: int, seed: int = 0) -> bytes:
    chars = " etaoinshrdlcumwfgypbvkjxqETAOINSHRDLCUMWFGYPBVKJXQ\n"
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _weighted_bytes([ord(c) for c in chars], weights, size, seed)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, alphabet=256, seed=seed),
    "uniform128": lambda size, seed: gen_uniform(size, alphabet=128, seed=seed),
    "zipf128": lambda size, seed: gen_zipf_like(size, alphabet=128, s=1.2, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.90, seed=seed),
    "repetitive99": lambda size, seed: gen_repetitive(size, dominant=ord('A'), dom_frac=0.99, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> Tuple[str, bytes]:
    """
    Unknown dataset names fall back to uniform256 so a typo does not abort
    a long run; the returned name says so
    """
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        return f"{name}_fallback_uniform256", gen_uniform(size_bytes, alphabet=256, seed=seed)
    return name, fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "numeric" or "exact"
    unique_symbols: int

    build_tree_ms: float
    build_table_ms: float
    encode_ms: float
    total_ms: float

    compressed_bytes: int
    total_bits: int
    padding: int
    compression_ratio: float
    bits_per_symbol: float
    consistent: int  # 1 or 0


def payload_consistent(payload: bitpack.EncodedData, codes: Dict[int, int], total_bits: int) -> bool:
    return (
        payload.codes is codes
        and len(payload.data) == (total_bits + 7) // 8
        and payload.padding == bitpack.expected_padding(total_bits)
    )


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}, got {pipeline!r}")

    ft = huff.frequency_table(data)

    t0 = now_ns()
    root = huff.build_huffman_tree(ft)
    t1 = now_ns()
    codes = huff.generate_huffman_codes(root)
    lengths = huff.huffman_code_lengths(root) if pipeline == "exact" else None
    t2 = now_ns()
    payload = bitpack.encode(codes, data, lengths)
    t3 = now_ns()

    total_bits = bitpack.packed_bit_count(codes, data, lengths)
    build_tree_ms = ns_to_ms(t1 - t0)
    build_table_ms = ns_to_ms(t2 - t1)
    encode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(ft),
        build_tree_ms=build_tree_ms,
        build_table_ms=build_table_ms,
        encode_ms=encode_ms,
        total_ms=build_tree_ms + build_table_ms + encode_ms,
        compressed_bytes=len(payload.data),
        total_bits=total_bits,
        padding=payload.padding,
        compression_ratio=len(payload.data) / max(1, len(data)),
        bits_per_symbol=total_bits / max(1, len(data)),
        consistent=1 if payload_consistent(payload, codes, total_bits) else 0,
    )


def run_all_pipelines(rows: List[MetricRow], exp_name: str, dataset_name: str, run_id: int, data: bytes) -> None:
    for pipeline in PIPELINES:
        try:
            row = run_one(data, pipeline)
        except huff.HuffmanError as exc:
            print(f"Skip {exp_name}/{dataset_name} run {run_id}: {exc}", file=sys.stderr)
            return
        row.exp_name = exp_name
        row.dataset_name = dataset_name
        row.run_id = run_id
        rows.append(row)


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


SUMMARY_METRICS = (
    "compression_ratio", "bits_per_symbol", "build_tree_ms", "build_table_ms", "encode_ms", "total_ms",
)

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("consistent_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            out["consistent_rate"] = sum(x.consistent for x in items) / len(items)
            w.writerow(out)


# Plotting

def _mean_of(rows: List[MetricRow], field: str) -> float:
    vals = [getattr(r, field) for r in rows]
    return statistics.mean(vals) if vals else float("nan")

def _plot_by_pipeline(rows: List[MetricRow], x_values: list, x_of: Callable[[MetricRow], object],
                      field: str, ylabel: str, title: str, path: Path, categorical: bool) -> None:
    plt.figure()
    xs = list(range(len(x_values))) if categorical else x_values
    for p in PIPELINES:
        y = [_mean_of([r for r in rows if r.pipeline == p and x_of(r) == v], field) for v in x_values]
        plt.plot(xs, y, marker="o", label=p)
    if categorical:
        plt.xticks(xs, x_values, rotation=20, ha="right")
    else:
        plt.xlabel("File Size (bytes)")
    plt.ylabel(ylabel)
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    plt.close()


def plot_experiment_1(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp1_distribution"]
    if not exp_rows:
        return
    datasets = sorted(set(r.dataset_name for r in exp_rows))
    by_dataset = lambda r: r.dataset_name

    _plot_by_pipeline(exp_rows, datasets, by_dataset, "compression_ratio", "Compressed Bytes / Original Bytes",
                      "Experiment 1: Compression Ratio by Distribution", outdir / "exp1_compression_ratio.png", True)
    _plot_by_pipeline(exp_rows, datasets, by_dataset, "encode_ms", "Encode Time (ms)",
                      "Experiment 1: Encode Time by Distribution", outdir / "exp1_encode_time.png", True)
    _plot_by_pipeline(exp_rows, datasets, by_dataset, "bits_per_symbol", "Bits per Input Byte",
                      "Experiment 1: Bits per Symbol by Distribution", outdir / "exp1_bits_per_symbol.png", True)


def plot_experiment_2(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    if not exp_rows:
        return
    by_size = lambda r: r.file_size_bytes

    for dist in sorted(set(r.dataset_name for r in exp_rows)):
        dist_rows = [r for r in exp_rows if r.dataset_name == dist]
        sizes = sorted(set(r.file_size_bytes for r in dist_rows))
        _plot_by_pipeline(dist_rows, sizes, by_size, "encode_ms", "Encode Time (ms)",
                          f"Experiment 2: Encode Time vs Size ({dist})", outdir / f"exp2_encode_time_{dist}.png", False)
        _plot_by_pipeline(dist_rows, sizes, by_size, "compression_ratio", "Compressed Bytes / Original Bytes",
                          f"Experiment 2: Compression Ratio vs Size ({dist})",
                          outdir / f"exp2_compression_ratio_{dist}.png", False)
        _plot_by_pipeline(dist_rows, sizes, by_size, "total_ms", "Total Time (ms) (tree + table + encode)",
                          f"Experiment 2: Total Runtime vs Size ({dist})", outdir / f"exp2_total_time_{dist}.png", False)


def plot_experiment_3(rows: List[MetricRow], outdir: Path) -> None:
    exp_rows = [r for r in rows if r.exp_name == "exp3_pipeline_compare"]
    if not exp_rows:
        return
    datasets = sorted(set(r.dataset_name for r in exp_rows))
    _plot_by_pipeline(exp_rows, datasets, lambda r: r.dataset_name, "total_ms",
                      "Total Time (ms) (tree + table + encode)", "Experiment 3: End-to-End Time by Dataset",
                      outdir / "exp3_total_time.png", True)


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman bit packing experiments (numeric vs exact-length codes).")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--dump_tree", action="store_true", help="Print the Huffman tree of the first experiment 1 dataset")

    # Experiment toggles
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_exp3", action="store_true", help="Disable experiment 3 (pipeline compare)")

    # Experiment 1 controls
    ap.add_argument("--exp1_size_kb", type=int, default=512, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--exp1_generators", type=str, default="uniform256,zipf128,repetitive90,english_like",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_mb", type=int, default=8, help="Experiment 2 max size in MB (power-of-two growth)")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf128,repetitive90",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap


def main(argv: List[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.exp1_size_kb) * 1024
        for i, gen_name in enumerate(parse_csv_list(args.exp1_generators)):
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                if args.dump_tree and i == 0 and run_id == 1:
                    try:
                        huff.print_huffman_tree(huff.build_huffman_tree(huff.frequency_table(data)), dataset_name)
                    except huff.InvalidInput as exc:
                        print(f"Cannot dump tree for {dataset_name}: {exc}", file=sys.stderr)
                run_all_pipelines(rows, "exp1_distribution", dataset_name, run_id, data)

    # Experiment 2: size scaling (multiple sizes, powers of 2)
    if not args.no_exp2:
        min_bytes = max(1, args.exp2_min_kb) * 1024
        max_bytes = max(1, args.exp2_max_mb) * 1024 * 1024

        sizes: List[int] = []
        s = min_bytes
        while s <= max_bytes:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    run_all_pipelines(rows, "exp2_size_scaling", dataset_name, run_id, data)

    # Experiment 3: pipeline compare on mixed datasets
    if not args.no_exp3:
        mixed_specs = [
            ("english_like", 1 * 1024 * 1024),
            ("uniform256",   1 * 1024 * 1024),
            ("zipf128",      1 * 1024 * 1024),
            ("zipf64",       1 * 1024 * 1024),
            ("repetitive90", 1 * 1024 * 1024),
            ("repetitive99", 1 * 1024 * 1024),
            ("uniform128",   1 * 1024 * 1024),
        ]

        for gen_name, size_b in mixed_specs:
            for run_id in range(1, args.runs + 1):
                dataset_name, data = generate_dataset(gen_name, size_b, args.seed + 200_000 + run_id + size_b)
                run_all_pipelines(rows, "exp3_pipeline_compare", dataset_name + f"_{size_b//1024}kb", run_id, data)

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    # Plots
    plot_experiment_1(rows, outdir)
    plot_experiment_2(rows, outdir)
    plot_experiment_3(rows, outdir)

    consistent_rate = sum(r.consistent for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Consistent payloads across all runs: {consistent_rate:.3f}")
    print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

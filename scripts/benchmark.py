#!/usr/bin/env python3
"""
Benchmark script for evaluation latency.

Measures end-to-end evaluation time (scoring plus next-trait
recommendation) and validates it against the interactive target:
- Evaluation latency <150ms p95 for a few hundred taxa

Usage:
    python scripts/benchmark.py [--runs N] [--taxa M] [--matrix PATH]

Options:
    --runs N       Evaluations per algorithm (default: 50)
    --taxa M       Taxa in the synthetic matrix (default: 500)
    --matrix PATH  Benchmark a matrix file instead of a synthetic one
"""

import argparse
import statistics
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, List

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taxonkey.core.matrix_loader import load_matrix
from taxonkey.domain.models import (
    AlgoOptions,
    Algorithm,
    ContinuousRange,
    EvaluationRequest,
    Matrix,
    Selection,
    Taxon,
    Trait,
    TraitKind,
)
from taxonkey.services.evaluation_service import EvaluationService


LATENCY_P95_MS = 150

COLOURS = ["red", "green", "blue", "white", "black"]


class BenchmarkResult:
    """Container for benchmark results."""

    def __init__(self, name: str):
        self.name = name
        self.latencies_ms: List[float] = []
        self.errors: List[Dict] = []

    def add_latency(self, latency_ms: float):
        self.latencies_ms.append(latency_ms)

    def add_error(self, error: Exception):
        """Record an error."""
        self.errors.append({
            "timestamp": datetime.now().isoformat(),
            "error": str(error),
            "type": type(error).__name__
        })

    @property
    def count(self) -> int:
        return len(self.latencies_ms)

    @property
    def median_ms(self) -> float:
        return statistics.median(self.latencies_ms) if self.latencies_ms else 0

    def percentile(self, q: float) -> float:
        if not self.latencies_ms:
            return 0
        return float(np.percentile(self.latencies_ms, q))

    @property
    def passed(self) -> bool:
        return self.count > 0 and self.percentile(95) < LATENCY_P95_MS

    def print_summary(self):
        """Print benchmark summary."""
        print(f"\n{'='*60}")
        print(f"Benchmark: {self.name}")
        print(f"{'='*60}")

        if self.errors:
            print(f"\nERRORS: {len(self.errors)}")
            for err in self.errors[-3:]:
                print(f"  - [{err['type']}] {err['error']}")

        if not self.latencies_ms:
            print("\nNo latency measurements recorded")
            return

        print(f"\nLatency (n={self.count}):")
        print(f"  Average: {statistics.mean(self.latencies_ms):.1f}ms")
        print(f"  Median:  {self.median_ms:.1f}ms")
        print(f"  Min:     {min(self.latencies_ms):.1f}ms")
        print(f"  Max:     {max(self.latencies_ms):.1f}ms")
        print(f"  p95:     {self.percentile(95):.1f}ms")
        print(f"  p99:     {self.percentile(99):.1f}ms")

        status = "PASS" if self.passed else "FAIL"
        print(f"\n  p95 < {LATENCY_P95_MS}ms: {status}")


def synthetic_matrix(n_taxa: int, n_binary: int = 12, seed: int = 42) -> Matrix:
    """Random matrix with binary, continuous, categorical and derived traits."""
    rng = np.random.default_rng(seed)

    traits = [
        Trait(id=f"bin_{i}", name=f"Binary trait {i}", group="Binary")
        for i in range(n_binary)
    ]
    traits += [
        Trait(id="length", name="Length (mm)", group="Size", kind=TraitKind.CONTINUOUS,
              min_value=0, max_value=200),
        Trait(id="mass", name="Mass (g)", group="Size", kind=TraitKind.CONTINUOUS,
              min_value=0, max_value=1000),
        Trait(id="colour", name="Colour", group="Colour", kind=TraitKind.CATEGORICAL_MULTI,
              allowed_states=COLOURS),
        Trait(id="form", name="Form", group="Form"),
    ]
    traits += [
        Trait(id=f"form_{s}", name=f"Form {s}", group="Form", kind=TraitKind.DERIVED,
              parent_id="form", state=s)
        for s in ("round", "oval", "long")
    ]

    taxa = []
    for n in range(n_taxa):
        binary = {
            f"bin_{i}": int(rng.choice([-1, 1]))
            for i in range(n_binary)
            if rng.random() > 0.15
        }
        form = int(rng.integers(0, 3))
        for idx, s in enumerate(("round", "oval", "long")):
            binary[f"form_{s}"] = 1 if idx == form else -1

        length = float(rng.uniform(0, 180))
        mass = float(rng.uniform(0, 900))
        colours = rng.choice(COLOURS, size=int(rng.integers(1, 4)), replace=False)

        taxa.append(Taxon(
            id=f"taxon_{n:04d}",
            name=f"Taxon {n}",
            traits=binary,
            continuous_traits={
                "length": ContinuousRange(min=length, max=length + float(rng.uniform(2, 20))),
                "mass": ContinuousRange(min=mass, max=mass + float(rng.uniform(5, 100))),
            },
            categorical_traits={"colour": [str(c) for c in colours]},
        ))

    return Matrix(name=f"synthetic ({n_taxa} taxa)", traits=traits, taxa=taxa)


def sample_selection(matrix: Matrix, rng: np.random.Generator) -> Selection:
    """A few random observations drawn from the matrix's binary traits."""
    binary = [t.id for t in matrix.traits if t.kind == TraitKind.BINARY]
    picked = rng.choice(binary, size=min(3, len(binary)), replace=False) if binary else []
    return Selection(selected={str(t): int(rng.choice([-1, 1])) for t in picked})


def run_benchmark(matrix: Matrix, algo: Algorithm, runs: int) -> BenchmarkResult:
    """Time `runs` evaluations of one algorithm."""
    service = EvaluationService()
    rng = np.random.default_rng(0)
    result = BenchmarkResult(f"{matrix.name} / {algo.value} ({runs} runs)")
    opts = AlgoOptions(use_pragmatic_score=True, apply_dependencies=True)

    # Warm-up
    service.evaluate(matrix, EvaluationRequest(algo=algo, opts=opts))

    for run in range(runs):
        request = EvaluationRequest(selection=sample_selection(matrix, rng), algo=algo, opts=opts)
        try:
            start = time.perf_counter()
            service.evaluate(matrix, request)
            result.add_latency((time.perf_counter() - start) * 1000)
        except Exception as e:
            result.add_error(e)

        if (run + 1) % 25 == 0:
            print(f"   {algo.value}: {run + 1}/{runs} evaluations complete")

    return result


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Benchmark evaluation latency")
    parser.add_argument(
        "--runs",
        type=int,
        default=50,
        help="Evaluations per algorithm (default: 50)"
    )
    parser.add_argument(
        "--taxa",
        type=int,
        default=500,
        help="Taxa in the synthetic matrix (default: 500)"
    )
    parser.add_argument(
        "--matrix",
        type=Path,
        help="Matrix file (YAML or JSON) to benchmark instead of a synthetic one"
    )

    args = parser.parse_args()

    print("\n" + "="*60)
    print("TaxonKey Evaluation Benchmark")
    print("="*60)
    print(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    matrix = load_matrix(args.matrix) if args.matrix else synthetic_matrix(args.taxa)
    print(f"Matrix: {matrix.name} ({len(matrix.taxa)} taxa x {len(matrix.traits)} traits)")

    results = [run_benchmark(matrix, algo, args.runs) for algo in Algorithm]

    for result in results:
        result.print_summary()

    if all(r.passed for r in results):
        print("\nAll benchmarks PASSED")
        return 0
    print("\nSome benchmarks FAILED")
    return 1


if __name__ == "__main__":
    sys.exit(main())

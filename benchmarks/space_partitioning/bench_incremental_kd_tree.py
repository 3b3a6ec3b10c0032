"""Benchmarks for the incremental k-d tree.

This module times online insertion and k-nearest-neighbor queries of
torchspatial's IncrementalKdTree and compares queries against a brute-force
``torch.topk`` scan over all points.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import numpy as np
import torch

from torchspatial.space_partitioning import IncrementalKdTree


def benchmark(
    func: Callable,
    *args: Any,
    warmup: int = 1,
    iterations: int = 5,
    **kwargs: Any,
) -> dict[str, float]:
    """Run a simple benchmark on a function.

    Parameters
    ----------
    func : callable
        Function to benchmark.
    *args : Any
        Positional arguments to pass to func.
    warmup : int, optional
        Number of warmup iterations. Default is 1.
    iterations : int, optional
        Number of timed iterations. Default is 5.
    **kwargs : Any
        Keyword arguments to pass to func.

    Returns
    -------
    dict
        Dictionary with timing statistics in seconds: 'mean', 'std', 'min'
        and 'max'.
    """
    for _ in range(warmup):
        func(*args, **kwargs)

    times = []
    for _ in range(iterations):
        start = time.perf_counter()
        func(*args, **kwargs)
        times.append(time.perf_counter() - start)

    return {
        "mean": np.mean(times),
        "std": np.std(times),
        "min": np.min(times),
        "max": np.max(times),
    }


def format_time(seconds: float) -> str:
    """Format time in appropriate units."""
    if seconds < 1e-6:
        return f"{seconds * 1e9:.3f}ns"
    elif seconds < 1e-3:
        return f"{seconds * 1e6:.3f}us"
    elif seconds < 1:
        return f"{seconds * 1e3:.3f}ms"
    else:
        return f"{seconds:.3f}s"


def print_comparison(
    name: str,
    times: dict[str, dict[str, float]],
) -> None:
    """Print benchmark comparison results for multiple methods."""
    print(f"\n{name}")
    print("-" * len(name))

    fastest_name = min(times.keys(), key=lambda k: times[k]["mean"])
    fastest_time = times[fastest_name]["mean"]

    for method_name, ts_time in times.items():
        slowdown = ts_time["mean"] / fastest_time
        if slowdown > 1.01:
            suffix = f" ({slowdown:.2f}x slower)"
        else:
            suffix = " (fastest)"
        print(
            f"  {method_name}: {format_time(ts_time['mean'])} "
            f"+/- {format_time(ts_time['std'])}{suffix}"
        )


def build_tree(points: torch.Tensor, bucket_size: int) -> IncrementalKdTree:
    tree = IncrementalKdTree(
        bucket_size, generator=torch.Generator().manual_seed(0)
    )
    for row in points:
        tree.add(row)
    return tree


def tree_queries(tree: IncrementalKdTree, queries: torch.Tensor, k: int):
    for query in queries:
        tree.k_nearest(query, k)


def brute_force_queries(
    points: torch.Tensor, queries: torch.Tensor, k: int
):
    for query in queries:
        distances = ((points - query) ** 2).sum(dim=1)
        torch.topk(distances, k=min(k, points.shape[0]), largest=False)


class BenchIncrementalKdTree:
    """Benchmarks for IncrementalKdTree insertion and queries."""

    def __init__(self, warmup: int = 1, iterations: int = 5):
        self.warmup = warmup
        self.iterations = iterations

    def _bench(
        self, func: Callable, *args: Any, **kwargs: Any
    ) -> dict[str, float]:
        return benchmark(
            func,
            *args,
            warmup=self.warmup,
            iterations=self.iterations,
            **kwargs,
        )

    def bench_insert(
        self, num_points: int = 2000, dims: int = 3, bucket_size: int = 10
    ) -> None:
        """Benchmark one-at-a-time insertion."""
        torch.manual_seed(0)
        points = torch.randn(num_points, dims, dtype=torch.float64)
        result = self._bench(build_tree, points, bucket_size)
        print(
            f"  insert n={num_points} d={dims} bucket={bucket_size}: "
            f"{format_time(result['mean'])} "
            f"({format_time(result['mean'] / num_points)} per point)"
        )

    def bench_query(
        self,
        num_points: int = 5000,
        dims: int = 3,
        k: int = 10,
        num_queries: int = 100,
    ) -> None:
        """Compare tree queries against brute force."""
        torch.manual_seed(0)
        points = torch.randn(num_points, dims, dtype=torch.float64)
        queries = torch.randn(num_queries, dims, dtype=torch.float64)
        tree = build_tree(points, bucket_size=10)

        print_comparison(
            f"k_nearest n={num_points} d={dims} k={k} "
            f"queries={num_queries}",
            {
                "IncrementalKdTree": self._bench(
                    tree_queries, tree, queries, k
                ),
                "brute force": self._bench(
                    brute_force_queries, points, queries, k
                ),
            },
        )

    def run_all(self) -> None:
        print("=" * 60)
        print("INCREMENTAL K-D TREE BENCHMARKS")
        print("=" * 60)

        print("\n--- Insertion ---")
        self.bench_insert()

        print("\n--- Queries ---")
        self.bench_query()

    def run_scaling(self) -> None:
        """Run scaling benchmarks with varying parameters."""
        print("=" * 60)
        print("SCALING BENCHMARKS")
        print("=" * 60)

        print("\n--- Bucket Size Scaling (insert) ---")
        for bucket_size in [4, 10, 32, 64]:
            self.bench_insert(bucket_size=bucket_size)

        print("\n--- Dimension Scaling (query) ---")
        for dims in [2, 3, 8, 16]:
            self.bench_query(dims=dims)


if __name__ == "__main__":
    bench = BenchIncrementalKdTree(warmup=1, iterations=5)
    bench.run_all()
    print("\n")
    bench.run_scaling()

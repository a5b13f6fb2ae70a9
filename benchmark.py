#!/usr/bin/env python3
"""
Performance Test Script for the Key-Value Engine

Tests:
1. Set throughput
2. Get throughput against a seeded store
3. Delete throughput
4. Concurrent mixed workload (threads) per lock strategy
5. Full snapshot write time

Metrics:
- Operations per second (ops/sec)
- Latency (p50, p95, p99)

Usage:
    python benchmark.py          # default sizes
    python benchmark.py quick    # smaller sizes for fast feedback
"""

import asyncio
import os
import random
import statistics
import string
import sys
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor

from snapkv.engine.engine import Engine
from snapkv.interfaces.lock_strategy import LockStrategy
from snapkv.models.concurrent_map import ConcurrentMap
from snapkv.models.locks import GlobalLock, ShardedLock
from snapkv.models.snapshot import Snapshot


class PerformanceTest:
    def __init__(self, data_file: str):
        self.data_file = data_file
        self.engine: Engine | None = None

    async def setup(self):
        """Initialize the engine with periodic snapshots effectively disabled."""
        self.engine = await Engine.create(self.data_file, sync_interval=3600)

    async def teardown(self):
        """Close the engine (writes the final snapshot)."""
        if self.engine:
            await self.engine.close()

    @staticmethod
    def generate_value(size: int) -> bytes:
        return ''.join(random.choices(string.ascii_letters + string.digits, k=size)).encode()

    @staticmethod
    def generate_key(i: int, prefix: str = "key") -> str:
        return f"{prefix}_{i:010d}"

    def seed_data(self, count: int, value_size: int) -> dict[str, bytes]:
        value = self.generate_value(value_size)
        return {self.generate_key(i): value for i in range(count)}

    @staticmethod
    def calculate_stats(latencies: list[int]) -> dict:
        """Calculate latency statistics (latencies in nanoseconds)."""
        if not latencies:
            return {}

        sorted_latencies = sorted(latencies)
        return {
            "mean_ms": statistics.mean(latencies) / 1_000_000,
            "median_ms": statistics.median(latencies) / 1_000_000,
            "p95_ms": sorted_latencies[int(len(sorted_latencies) * 0.95)] / 1_000_000,
            "p99_ms": sorted_latencies[int(len(sorted_latencies) * 0.99)] / 1_000_000,
        }

    @staticmethod
    def print_results(results: dict) -> None:
        print(f"  {results['test']}: {results['ops_per_sec']:,.0f} ops/sec")
        if "median_ms" in results:
            print(
                f"    p50 {results['median_ms']:.4f} ms | p95 {results['p95_ms']:.4f} ms"
                f" | p99 {results['p99_ms']:.4f} ms"
            )

    async def _timed(self, name: str, keys: list[str], op) -> dict:
        latencies = []
        start_time = time.perf_counter_ns()
        for key in keys:
            op_start = time.perf_counter_ns()
            await op(key)
            latencies.append(time.perf_counter_ns() - op_start)
        elapsed = (time.perf_counter_ns() - start_time) / 1_000_000_000

        results = {
            "test": name,
            "count": len(keys),
            "elapsed_sec": elapsed,
            "ops_per_sec": len(keys) / elapsed,
            **self.calculate_stats(latencies),
        }
        self.print_results(results)
        return results

    async def test_set(self, count: int, value_size: int) -> dict:
        value = self.generate_value(value_size)
        keys = [self.generate_key(i, "set") for i in range(count)]
        return await self._timed("Set", keys, lambda key: self.engine.set(key, value))

    async def test_get(self, count: int, key_range: int) -> dict:
        keys = [self.generate_key(random.randrange(key_range)) for _ in range(count)]
        return await self._timed("Get (seeded)", keys, self.engine.get)

    async def test_delete(self, count: int) -> dict:
        keys = [self.generate_key(i, "set") for i in range(count)]
        return await self._timed("Delete", keys, self.engine.delete)

    async def test_snapshot(self) -> dict:
        start_time = time.perf_counter_ns()
        count = await self.engine.snapshots.sync()
        elapsed = (time.perf_counter_ns() - start_time) / 1_000_000_000

        results = {
            "test": f"Snapshot ({count} keys, {os.path.getsize(self.data_file):,} bytes)",
            "count": 1,
            "elapsed_sec": elapsed,
            "ops_per_sec": 1 / elapsed,
        }
        print(f"  {results['test']}: {elapsed * 1000:.1f} ms")
        return results


def threaded_mixed_workload(lock: LockStrategy, seed: dict[str, bytes], ops: int, threads: int) -> float:
    """Run a 80/15/5 get/set/delete mix from several threads; returns ops/sec."""
    store = ConcurrentMap(lock)
    store.seed(seed)
    keys = list(seed)
    value = b"x" * 100

    def worker(worker_id: int) -> None:
        rng = random.Random(worker_id)
        for _ in range(ops):
            key = rng.choice(keys)
            roll = rng.random()
            if roll < 0.80:
                store.get(key)
            elif roll < 0.95:
                store.set(key, value)
            else:
                store.delete(key)

    start_time = time.perf_counter()
    with ThreadPoolExecutor(max_workers=threads) as pool:
        list(pool.map(worker, range(threads)))
    return (ops * threads) / (time.perf_counter() - start_time)


async def run_tests(count: int, seed_count: int):
    with tempfile.TemporaryDirectory() as tmpdir:
        test = PerformanceTest(os.path.join(tmpdir, "bench.json"))
        seed = test.seed_data(seed_count, value_size=100)

        try:
            await test.setup()
            test.engine.seed(seed)

            print(f"\n{'='*60}")
            print(f"Engine: {count} ops, {seed_count} seeded keys")
            print(f"{'='*60}")

            await test.test_set(count, value_size=100)
            await test.test_get(count, key_range=seed_count)
            await test.test_delete(count)
            await test.test_snapshot()
        finally:
            await test.teardown()

        print(f"\n{'='*60}")
        print("Threaded mixed workload (8 threads)")
        print(f"{'='*60}")
        for name, lock in (("GlobalLock", GlobalLock()), ("ShardedLock(16)", ShardedLock(16))):
            rate = threaded_mixed_workload(lock, seed, ops=count // 8, threads=8)
            print(f"  {name}: {rate:,.0f} ops/sec")

        # Round-trip check on what the benchmark wrote
        assert len(Snapshot.load(test.data_file)) == seed_count


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "quick":
        asyncio.run(run_tests(count=10_000, seed_count=10_000))
    else:
        asyncio.run(run_tests(count=100_000, seed_count=100_000))

"""
Concurrency and stress tests for the key-value engine.
"""

import asyncio
import random
import threading
from concurrent.futures import ThreadPoolExecutor

from snapkv.engine.engine import Engine
from snapkv.models.snapshot import Snapshot


class TestThreadedMap:
    """Thread stress tests against ConcurrentMap for every lock strategy."""

    def test_disjoint_writers_then_readers(self, store):
        """No lost updates: every key written by any writer is readable."""
        writers, keys_per_writer = 8, 500

        def writer(writer_id: int) -> None:
            for i in range(keys_per_writer):
                store.set(f"w{writer_id}_k{i}", f"first_{writer_id}_{i}".encode())
                store.set(f"w{writer_id}_k{i}", f"value_{writer_id}_{i}".encode())

        def reader(writer_id: int) -> list[str]:
            missing = []
            for i in range(keys_per_writer):
                value, found = store.get(f"w{writer_id}_k{i}")
                if not found or value != f"value_{writer_id}_{i}".encode():
                    missing.append(f"w{writer_id}_k{i}")
            return missing

        with ThreadPoolExecutor(max_workers=writers) as pool:
            list(pool.map(writer, range(writers)))

        with ThreadPoolExecutor(max_workers=writers) as pool:
            results = list(pool.map(reader, range(writers)))

        assert all(not missing for missing in results)
        assert store.size() == writers * keys_per_writer

    def test_mixed_workload(self, store):
        """Readers never see a value that was never written for that key."""
        keys = [f"key{i:03d}" for i in range(100)]
        for key in keys:
            store.set(key, key.encode())
        errors: list[str] = []

        def worker(worker_id: int) -> None:
            rng = random.Random(worker_id)
            for _ in range(2000):
                key = rng.choice(keys)
                op = rng.random()
                if op < 0.5:
                    value, found = store.get(key)
                    if found and not value.startswith(key.encode()):
                        errors.append(f"{key} -> {value!r}")
                elif op < 0.8:
                    store.set(key, key.encode() + f"|{worker_id}".encode())
                else:
                    store.delete(key)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []

    def test_snapshot_is_consistent_during_writes(self, store):
        """Each copy reflects whole, completed writes only."""
        stop = threading.Event()

        def writer() -> None:
            i = 0
            while not stop.is_set():
                # Pairs are always written with matching values
                store.set("left", str(i).encode())
                store.set("right", str(i).encode())
                i += 1

        thread = threading.Thread(target=writer)
        thread.start()
        try:
            for _ in range(200):
                snap = store.snapshot()
                if "left" in snap and "right" in snap:
                    assert int(snap["left"]) >= int(snap["right"])
        finally:
            stop.set()
            thread.join()

    def test_seed_is_atomic_for_readers(self, store):
        old = {f"k{i}": b"old" for i in range(200)}
        new = {f"k{i}": b"new" for i in range(200)}
        store.seed(old)
        stop = threading.Event()
        torn: list[dict] = []

        def seeder() -> None:
            while not stop.is_set():
                store.seed(new)
                store.seed(old)

        thread = threading.Thread(target=seeder)
        thread.start()
        try:
            for _ in range(200):
                values = set(store.snapshot().values())
                if len(values) != 1:
                    torn.append(values)
        finally:
            stop.set()
            thread.join()

        assert torn == []


class TestHighConcurrency:
    """Asyncio stress tests against the Engine."""

    async def test_many_concurrent_writers(self, data_file):
        async with Engine(data_file) as engine:

            async def writer(writer_id: int, count: int) -> None:
                for i in range(count):
                    await engine.set(f"writer{writer_id}_key{i}", f"value{i}".encode())
                    if i % 10 == 0:
                        await asyncio.sleep(0)

            await asyncio.gather(*[writer(i, 100) for i in range(10)])

            for writer_id in range(10):
                for i in range(100):
                    result = await engine.get(f"writer{writer_id}_key{i}")
                    assert result == (f"value{i}".encode(), True)

    async def test_many_concurrent_readers(self, data_file):
        async with Engine(data_file) as engine:
            engine.seed({f"key{i:04d}": f"value{i}".encode() for i in range(1000)})

            async def reader(count: int) -> bool:
                results = []
                for _ in range(count):
                    key = f"key{random.randint(0, 999):04d}"
                    _, found = await engine.get(key)
                    results.append(found)
                    await asyncio.sleep(0)
                return all(results)

            results = await asyncio.gather(*[reader(100) for _ in range(20)])
            assert all(results)

    async def test_writes_during_periodic_snapshots(self, data_file):
        """Ticks running in threads do not disturb concurrent writers."""
        async with Engine(data_file, sync_interval=0.01) as engine:

            async def writer(writer_id: int) -> None:
                for i in range(200):
                    await engine.set(f"w{writer_id}_k{i}", b"x" * 20)
                    await asyncio.sleep(0.0005)

            await asyncio.gather(*[writer(i) for i in range(5)])
            assert engine.size() == 1000

        assert len(Snapshot.load(data_file)) == 1000

    async def test_threads_and_event_loop_share_engine(self, data_file):
        """Map operations stay correct when driven from worker threads too."""
        async with Engine(data_file) as engine:
            loop = asyncio.get_running_loop()

            def thread_writer(writer_id: int) -> None:
                for i in range(200):
                    engine._store.set(f"t{writer_id}_k{i}", b"t")

            async def loop_writer() -> None:
                for i in range(200):
                    await engine.set(f"loop_k{i}", b"l")
                    await asyncio.sleep(0)

            await asyncio.gather(
                loop_writer(),
                *[loop.run_in_executor(None, thread_writer, i) for i in range(4)],
            )

            assert engine.size() == 200 + 4 * 200

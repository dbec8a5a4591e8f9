"""
Tests for LockedTelemetryStore and the store factory.
"""

import threading

import pytest

from sensorlog.core.models import SensorRecord
from sensorlog.store import LockedTelemetryStore, TelemetryStore, get_store, list_backends


class TestLockedTelemetryStore:
    """Tests for LockedTelemetryStore class."""

    def test_append_and_snapshot_preserve_arrival_order(self, store, make_record):
        """Snapshot returns records in insertion order, not timestamp order."""
        later = make_record(timestamp="2024-01-03T00:00:00.000Z")
        earlier = make_record(timestamp="2024-01-01T00:00:00.000Z")

        store.append(later)
        store.append(earlier)

        assert store.snapshot() == [later, earlier]
        assert len(store) == 2

    def test_snapshot_is_independent_copy(self, store, make_record):
        """Mutating a snapshot does not affect the store."""
        store.append(make_record())
        snapshot = store.snapshot()
        snapshot.clear()

        assert len(store.snapshot()) == 1

    def test_snapshot_excludes_later_appends(self, store, make_record):
        """A record appended after snapshot() returns is not in that snapshot."""
        store.append(make_record(sensor_id="a"))
        snapshot = store.snapshot()
        store.append(make_record(sensor_id="b"))

        assert [r.sensor_id for r in snapshot] == ["a"]

    def test_drain_twice(self, store, make_record):
        """Second drain with no intervening append is empty."""
        store.append(make_record())

        first = store.drain_export_batch()
        second = store.drain_export_batch()

        assert len(first) == 1
        assert second == []

    def test_drain_empty_store(self, store):
        """Draining with nothing pending returns an empty list."""
        assert store.drain_export_batch() == []

    def test_drain_does_not_touch_main_log(self, store, make_record):
        """Drained records stay in the main log."""
        record = make_record()
        store.append(record)
        store.drain_export_batch()

        assert store.snapshot() == [record]

    def test_export_batch_is_subset_of_main_log(self, store, make_record):
        """Every pending export record is also in the main log."""
        for i in range(3):
            store.append(make_record(sensor_id=f"s-{i}"))
        store.drain_export_batch()
        store.append(make_record(sensor_id="s-3"))

        pending = store.drain_export_batch()

        assert [r.sensor_id for r in pending] == ["s-3"]
        assert all(r in store.snapshot() for r in pending)

    def test_restore_export_batch_prepends(self, store, make_record):
        """Records from a failed export go back in front of newer pending records."""
        store.append(make_record(sensor_id="old"))
        failed = store.drain_export_batch()
        store.append(make_record(sensor_id="new"))

        store.restore_export_batch(failed)

        assert [r.sensor_id for r in store.drain_export_batch()] == ["old", "new"]

    def test_load_replaces_main_log_only(self, store, make_record):
        """load() replaces the log wholesale and leaves the export batch alone."""
        store.append(make_record(sensor_id="pending"))
        loaded = [make_record(sensor_id="a"), make_record(sensor_id="b")]

        store.load(loaded)

        assert store.snapshot() == loaded
        assert [r.sensor_id for r in store.drain_export_batch()] == ["pending"]

    def test_load_copies_input(self, store, make_record):
        """The caller's list is not shared with the store."""
        loaded = [make_record()]
        store.load(loaded)
        loaded.append(make_record(sensor_id="late"))

        assert len(store) == 1

    def test_concurrent_appends(self, store):
        """N appends from several threads yield exactly N records, no duplicates or omissions."""
        writers = 8
        per_writer = 500
        barrier = threading.Barrier(writers)

        def writer(writer_id):
            barrier.wait()
            for i in range(per_writer):
                store.append(
                    SensorRecord(
                        timestamp="2024-01-02T00:00:00.000Z",
                        temperature=float(i),
                        humidity=50.0,
                        light=500.0,
                        sensor_id=f"w{writer_id}",
                    )
                )

        threads = [threading.Thread(target=writer, args=(w,)) for w in range(writers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = store.snapshot()
        keys = {(r.sensor_id, r.temperature) for r in snapshot}

        assert len(snapshot) == writers * per_writer
        assert len(keys) == writers * per_writer
        assert len(store.drain_export_batch()) == writers * per_writer

    def test_concurrent_drains_deliver_each_record_once(self, store, make_record):
        """Concurrent drains never hand out the same record twice."""
        for i in range(1000):
            store.append(make_record(temperature=float(i)))

        results = []
        lock = threading.Lock()

        def drainer():
            batch = store.drain_export_batch()
            with lock:
                results.extend(batch)

        threads = [threading.Thread(target=drainer) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(r.temperature for r in results) == [float(i) for i in range(1000)]


class TestStoreFactory:
    """Tests for the store registry."""

    def test_get_default_store(self):
        """The default backend is the locked store."""
        store = get_store()

        assert isinstance(store, LockedTelemetryStore)
        assert isinstance(store, TelemetryStore)
        assert store.name == "locked"
        assert len(store) == 0

    def test_unknown_backend(self):
        """Unknown backends are rejected with the available list."""
        with pytest.raises(ValueError, match="Available backends: locked"):
            get_store("sharded")

    def test_list_backends(self):
        assert list_backends() == ["locked"]

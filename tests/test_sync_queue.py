# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from pathlib import Path

from fitcoach.cache.keys import CacheKeys
from fitcoach.cache.store import CacheStore
from fitcoach.sync.models import OperationAction, OperationType
from fitcoach.sync.queue import SyncQueue


class TestSyncQueue(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="fitcoach-test-"))
        self.cache = CacheStore(self._tmp / "fitcoach.db")
        self.queue = SyncQueue(self.cache)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_appends_in_order(self) -> None:
        a = self.queue.add_to_queue("meal_log", "create", "u1", {"meal_id": "m1", "date": "2024-05-01"})
        b = self.queue.add_to_queue(OperationType.water_log, OperationAction.update, "u1", {"date": "2024-05-01"})

        ops = self.queue.get_queue()
        self.assertEqual([op.id for op in ops], [a.id, b.id])
        self.assertLess(ops[0].seq, ops[1].seq)
        self.assertEqual(ops[0].retry_count, 0)
        self.assertEqual(self.queue.get_queue_length(), 2)
        self.assertTrue(self.queue.has_pending_operations())

    def test_same_id_is_enqueued_once(self) -> None:
        first = self.queue.add_to_queue("meal_log", "create", "u1", {"meal_id": "m1"}, op_id="op-1")
        again = self.queue.add_to_queue("meal_log", "create", "u1", {"meal_id": "other"}, op_id="op-1")

        self.assertEqual(self.queue.get_queue_length(), 1)
        self.assertEqual(again.id, first.id)
        self.assertEqual(again.payload, {"meal_id": "m1"})

    def test_day_keyed_updates_coalesce(self) -> None:
        self.queue.add_to_queue("step_log", "update", "u1", {"date": "2024-05-01", "step_count": 1000}, coalesce_on=("date",))
        self.queue.add_to_queue("step_log", "update", "u1", {"date": "2024-05-01", "step_count": 2500}, coalesce_on=("date",))
        self.queue.add_to_queue("step_log", "update", "u1", {"date": "2024-05-02", "step_count": 10}, coalesce_on=("date",))
        self.queue.add_to_queue("step_log", "update", "u2", {"date": "2024-05-01", "step_count": 7}, coalesce_on=("date",))

        ops = self.queue.get_queue()
        self.assertEqual(len(ops), 3)
        self.assertEqual(ops[0].payload["step_count"], 2500)

    def test_cache_updates_commit_with_the_enqueue(self) -> None:
        key = CacheKeys.todays_water("u1")
        self.queue.add_to_queue(
            "water_log",
            "update",
            "u1",
            {"date": "2024-05-01", "amount_ml": 750},
            cache_updates={key: {"total": 750, "date": "2024-05-01"}},
        )
        self.assertEqual(CacheStore(self.cache.db_path).get_cache(key), {"total": 750, "date": "2024-05-01"})

    def test_update_payload_is_shallow_merge(self) -> None:
        op = self.queue.add_to_queue("workout_session", "create", "u1", {"workout_id": "w1", "notes": "a"})
        self.queue.update_operation_payload(op.id, {"notes": "b", "end_time": "t"})
        self.assertEqual(
            self.queue.get_operation(op.id).payload,
            {"workout_id": "w1", "notes": "b", "end_time": "t"},
        )
        self.assertIsNone(self.queue.update_operation_payload("missing", {}))

    def test_increment_retry_and_remove(self) -> None:
        op = self.queue.add_to_queue("meal_log", "delete", "u1", {"id": "log-1"})
        self.queue.increment_retry(op.id, "boom")
        stored = self.queue.get_operation(op.id)
        self.assertEqual(stored.retry_count, 1)
        self.assertEqual(stored.last_error, "boom")

        self.assertTrue(self.queue.remove_from_queue(op.id))
        self.assertFalse(self.queue.remove_from_queue(op.id))
        self.assertFalse(self.queue.has_pending_operations())

    def test_filters_and_lookup(self) -> None:
        self.queue.add_to_queue("meal_log", "create", "u1", {"meal_id": "m1"})
        self.queue.add_to_queue("supplement_log", "create", "u1", {"assignment_id": "s1"})
        self.queue.add_to_queue("supplement_log", "create", "u2", {"assignment_id": "s1"})

        self.assertEqual(len(self.queue.get_operations_by_type("supplement_log")), 2)
        self.assertEqual(len(self.queue.get_operations_by_user("u1")), 2)
        found = self.queue.find_existing_operation("supplement_log", "s1", field="assignment_id", user_id="u2")
        self.assertEqual(found.user_id, "u2")
        self.assertIsNone(self.queue.find_existing_operation("meal_log", "m9", field="meal_id"))

    def test_lookup_by_payload_fields_newest_first(self) -> None:
        older = self.queue.add_to_queue("supplement_log", "create", "u1", {"assignment_id": "s1", "schedule": "Morning"})
        self.queue.add_to_queue("supplement_log", "create", "u1", {"assignment_id": "s1", "schedule": "Evening"})
        newer = self.queue.add_to_queue("supplement_log", "create", "u1", {"assignment_id": "s1", "schedule": "Morning"})
        self.queue.add_to_queue("supplement_log", "delete", "u1", {"assignment_id": "s1", "schedule": "Morning"})

        found = self.queue.find_existing_operation(
            "supplement_log", "s1", field="assignment_id", action="create", match={"schedule": "Morning"}, newest=True
        )
        self.assertEqual(found.id, newer.id)
        found = self.queue.find_existing_operation(
            "supplement_log", "s1", field="assignment_id", action="create", match={"schedule": "Morning"}
        )
        self.assertEqual(found.id, older.id)
        self.assertIsNone(
            self.queue.find_existing_operation("supplement_log", "s1", field="assignment_id", match={"schedule": "Noon"})
        )

    def test_failed_operations(self) -> None:
        op = self.queue.add_to_queue("meal_log", "create", "u1", {"meal_id": "m1"})
        self.queue.add_failed_operation(op, "Exceeded max retries (3)")

        failed = self.queue.get_failed_operations()
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].id, op.id)
        self.assertEqual(failed[0].error, "Exceeded max retries (3)")
        self.queue.clear_failed_operations()
        self.assertEqual(self.queue.get_failed_operations(), [])

    def test_clear_queue(self) -> None:
        self.queue.add_to_queue("meal_log", "create", "u1", {})
        self.queue.clear_queue()
        self.assertEqual(self.queue.get_queue(), [])


if __name__ == "__main__":
    unittest.main()

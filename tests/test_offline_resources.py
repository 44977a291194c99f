# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from fitcoach.cache.keys import CacheKeys
from fitcoach.cache.store import CacheStore
from fitcoach.offline import (
    NutritionResource,
    OfflineContext,
    StepsResource,
    SupplementsResource,
    WaterResource,
    WorkoutResource,
    get_cached_home_stats,
    precache_user_data,
)
from fitcoach.offline.precache import check_in_status
from fitcoach.session import AuthSession
from fitcoach.sync.manager import SyncManager
from fitcoach.sync.queue import SyncQueue
from tests.fakes import FakeClient
from tests.fixtures import PROFILE, TODAY, USER_ID, WEDNESDAY_MORNING, backend_tables

FRIDAY = datetime(2024, 5, 3, 9, 0)


class OfflineResourceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="fitcoach-test-"))
        self.cache = CacheStore(self._tmp / "fitcoach.db")
        self.queue = SyncQueue(self.cache)
        self.client = FakeClient(backend_tables())
        self.context = OfflineContext(self.queue, SyncManager(self.client, self.queue))
        self.session = AuthSession(self.cache)
        self.session.sign_in({"id": USER_ID, "email": "athlete@example.com"}, PROFILE)

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    async def go_online(self) -> None:
        await self.context.set_network_state(True, True)

    async def go_offline(self) -> None:
        await self.context.set_network_state(False)


class TestWorkoutResource(OfflineResourceTestCase):
    async def test_online_fetch_picks_todays_workout_and_caches(self) -> None:
        await self.go_online()
        state = await WorkoutResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertFalse(state.is_from_cache)
        self.assertIsNone(state.error)
        self.assertEqual(state.todays_workout["id"], "w3")
        self.assertFalse(state.is_rest_day)
        self.assertFalse(state.is_completed)
        self.assertEqual(state.current_day_name, "Wednesday")
        self.assertEqual(len(state.workouts), 3)
        self.assertIsNotNone(self.cache.get_cache(CacheKeys.workout_program(USER_ID)))
        self.assertIsNotNone(self.cache.get_cache(CacheKeys.todays_workout(USER_ID)))

    async def test_offline_reslices_the_cached_week(self) -> None:
        await self.go_online()
        await WorkoutResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        await self.go_offline()

        state = await WorkoutResource(self.client, self.context, self.session).refresh(FRIDAY)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.todays_workout["id"], "w5")
        self.assertTrue(state.is_rest_day)
        self.assertEqual(state.current_day_name, "Friday")

    async def test_offline_without_cache(self) -> None:
        await self.go_offline()
        state = await WorkoutResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        self.assertEqual(state.error, "No cached workout data available")
        self.assertFalse(state.is_from_cache)
        self.assertIsNone(state.todays_workout)

    async def test_failed_fetch_degrades_to_cache(self) -> None:
        await self.go_online()
        await WorkoutResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        self.client.failing_tables.add("assigned_plans")

        with self.assertLogs("fitcoach.offline.base", level="ERROR"):
            state = await WorkoutResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.todays_workout["id"], "w3")
        self.assertIn("assigned_plans unavailable", state.error)

    async def test_queue_session_and_sets(self) -> None:
        resource = WorkoutResource(self.client, self.context, self.session)
        resource.queue_workout_session({"workout_id": "w3", "start_time": "2024-05-01T10:00:00", "local_session_id": "l1"})
        resource.queue_workout_set({"local_session_id": "l1", "exercise_instance_id": "ei3", "set_number": 1, "reps": 10})

        self.assertEqual(self.context.pending_operations, 2)
        session_op = self.queue.get_operations_by_type("workout_session")[0]
        self.assertEqual(session_op.payload["user_id"], USER_ID)

    def add_previous_session(self) -> None:
        self.client.rows("workout_sessions").append(
            {"id": "ws1", "workout_id": "w1", "user_id": USER_ID, "start_time": "2024-04-29T17:00:00", "end_time": "2024-04-29T18:00:00"}
        )
        self.client.rows("completed_exercise_sets").extend(
            [
                {"workout_session_id": "ws1", "exercise_instance_id": "ei1", "set_order": 1, "weight": 80, "reps": 8, "is_completed": True},
                {"workout_session_id": "ws1", "exercise_instance_id": "ei1", "set_order": 2, "weight": 82.5, "reps": 6, "is_completed": True},
            ]
        )

    async def test_previous_sets_online_then_offline(self) -> None:
        self.add_previous_session()
        await self.go_online()
        resource = WorkoutResource(self.client, self.context, self.session)

        sets = await resource.previous_sets("w1")
        self.assertEqual([(s.weight, s.reps) for s in sets["ei1"]], [("80", 8), ("82.5", 6)])
        self.assertTrue(self.cache.has_cache(CacheKeys.previous_workout_sets(USER_ID, "w1")))

        await self.go_offline()
        cached = await resource.previous_sets("w1")
        self.assertEqual([(s.set_order, s.weight) for s in cached["ei1"]], [(1, "80"), (2, "82.5")])
        self.assertEqual(await resource.previous_sets("w3"), {})

    async def test_previous_sets_failed_fetch_uses_cache(self) -> None:
        self.add_previous_session()
        await self.go_online()
        resource = WorkoutResource(self.client, self.context, self.session)
        await resource.previous_sets("w1")
        self.client.failing_tables.add("workout_sessions")

        with self.assertLogs("fitcoach.offline.workout", level="WARNING"):
            sets = await resource.previous_sets("w1")
        self.assertEqual(len(sets["ei1"]), 2)

    async def test_signed_out_does_nothing(self) -> None:
        self.session.sign_out()
        resource = WorkoutResource(self.client, self.context, self.session)
        state = await resource.refresh(WEDNESDAY_MORNING)
        self.assertIsNone(state.error)
        self.assertIsNone(resource.queue_workout_set({"session_id": "s"}))
        self.assertEqual(self.client.calls, [])


class TestNutritionResource(OfflineResourceTestCase):
    async def test_online_fetch(self) -> None:
        await self.go_online()
        state = await NutritionResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertEqual(state.nutrition_plan["id"], "np1")
        self.assertEqual([m["name"] for m in state.meals_for_today], ["Breakfast", "Lunch"])
        self.assertEqual(state.daily_log["date"], TODAY)
        self.assertEqual(state.daily_log["target_calories"], 2500)
        lunch = state.meals_for_today[1]
        self.assertAlmostEqual(lunch["total_calories"], 330.0)

    async def test_offline_next_day_starts_an_empty_log(self) -> None:
        await self.go_online()
        await NutritionResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        await self.go_offline()

        state = await NutritionResource(self.client, self.context, self.session).refresh(FRIDAY)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.daily_log["date"], "2024-05-03")
        self.assertEqual(state.daily_log["logged_meals"], [])
        self.assertEqual(len(state.meals_for_today), 2)

    async def test_offline_without_cache(self) -> None:
        await self.go_offline()
        state = await NutritionResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        self.assertEqual(state.error, "No cached nutrition data available")

    async def test_queue_meal_log_and_delete(self) -> None:
        resource = NutritionResource(self.client, self.context, self.session)
        op = resource.queue_meal_log("m1", TODAY, notes="ate late")
        resource.queue_meal_log_delete("log-1")

        self.assertEqual(op.payload, {"user_id": USER_ID, "meal_id": "m1", "date": TODAY, "notes": "ate late"})
        self.assertEqual(self.context.pending_operations, 2)


class TestSupplementsResource(OfflineResourceTestCase):
    async def test_online_fetch_skips_inactive_assignments(self) -> None:
        await self.go_online()
        state = await SupplementsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertEqual(sorted(s["id"] for s in state.supplements), ["as1", "as2"])
        self.assertEqual(state.total_supplements, 2)
        self.assertEqual(state.adherence_percentage, 0)

    async def test_optimistic_log_and_undo(self) -> None:
        await self.go_online()
        resource = SupplementsResource(self.client, self.context, self.session)
        await resource.refresh(WEDNESDAY_MORNING)

        resource.queue_supplement_log("as1", "Morning")
        state = resource.snapshot()
        self.assertEqual(state.logged_count, 1)
        self.assertEqual(state.adherence_percentage, 50)
        self.assertEqual(self.context.pending_operations, 1)
        cached = self.cache.get_cache(CacheKeys.todays_supplements(USER_ID))
        self.assertTrue(next(s for s in cached["supplements"] if s["id"] == "as1")["is_logged"])

        # never synced: undoing drops the queued create
        resource.queue_supplement_log_delete(None, "as1", "Morning")
        self.assertEqual(resource.snapshot().logged_count, 0)
        self.assertEqual(self.context.pending_operations, 0)

    async def test_undo_drops_only_the_matching_schedule(self) -> None:
        await self.go_online()
        resource = SupplementsResource(self.client, self.context, self.session)
        await resource.refresh(WEDNESDAY_MORNING)

        resource.queue_supplement_log("as1", "Morning")
        resource.queue_supplement_log("as1", "Evening")
        resource.queue_supplement_log_delete(None, "as1", "Evening")

        remaining = self.queue.get_queue()
        self.assertEqual([op.payload["schedule"] for op in remaining], ["Morning"])
        self.assertEqual(self.context.pending_operations, 1)

    async def test_undo_keeps_a_pending_log_from_an_earlier_day(self) -> None:
        await self.go_online()
        resource = SupplementsResource(self.client, self.context, self.session)
        await resource.refresh(WEDNESDAY_MORNING)
        self.queue.add_to_queue(
            "supplement_log",
            "create",
            USER_ID,
            {"user_id": USER_ID, "assignment_id": "as1", "schedule": "Morning", "date": "2024-04-30"},
        )

        resource.queue_supplement_log("as1", "Morning")
        resource.queue_supplement_log_delete(None, "as1", "Morning")

        self.assertEqual([op.payload["date"] for op in self.queue.get_queue()], ["2024-04-30"])

    async def test_undo_of_a_synced_log_queues_a_delete(self) -> None:
        resource = SupplementsResource(self.client, self.context, self.session)
        op = resource.queue_supplement_log_delete("log-7", "as1", "Morning")
        self.assertEqual(op.action.value, "delete")
        self.assertEqual(op.payload, {"id": "log-7"})

    async def test_offline_stale_cache_is_shown_with_a_warning(self) -> None:
        await self.go_online()
        await SupplementsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        await self.go_offline()

        state = await SupplementsResource(self.client, self.context, self.session).refresh(FRIDAY)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.error, "Cached data may be outdated")
        self.assertEqual(state.total_supplements, 2)

    async def test_failed_fetch_ignores_a_stale_cache(self) -> None:
        await self.go_online()
        await SupplementsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        self.client.failing_tables.add("athlete_supplements")

        state = await SupplementsResource(self.client, self.context, self.session).refresh(FRIDAY)

        self.assertFalse(state.is_from_cache)
        self.assertEqual(state.supplements, [])
        self.assertIsNotNone(state.error)

    async def test_offline_without_cache(self) -> None:
        await self.go_offline()
        state = await SupplementsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        self.assertEqual(state.error, "No cached supplements data available")


class TestDailyTotals(OfflineResourceTestCase):
    async def test_steps_online(self) -> None:
        await self.go_online()
        state = await StepsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertEqual(state.step_goal, 10000)
        self.assertEqual(state.step_count, 2345)
        self.assertEqual(state.progress_percentage, 23)
        self.assertEqual(state.remaining_steps, 7655)
        self.assertEqual(state.formatted_steps, "2.3k")
        self.assertEqual(state.formatted_goal, "10k")
        self.assertTrue(state.has_goal)

    async def test_steps_updates_coalesce_and_hit_the_cache(self) -> None:
        await self.go_online()
        resource = StepsResource(self.client, self.context, self.session)
        await resource.refresh(WEDNESDAY_MORNING)

        resource.queue_steps_update(5000, WEDNESDAY_MORNING)
        resource.add_steps(1000, WEDNESDAY_MORNING)

        self.assertEqual(self.context.pending_operations, 1)
        self.assertEqual(self.queue.get_queue()[0].payload["step_count"], 6000)
        self.assertEqual(self.cache.get_cache(CacheKeys.todays_steps(USER_ID))["total"], 6000)
        self.assertEqual(resource.snapshot().progress_percentage, 60)

    async def test_offline_stale_cache_keeps_goal_resets_count(self) -> None:
        await self.go_online()
        await StepsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)
        await self.go_offline()

        state = await StepsResource(self.client, self.context, self.session).refresh(FRIDAY)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.step_goal, 10000)
        self.assertEqual(state.step_count, 0)

    async def test_offline_goal_only_cache(self) -> None:
        self.cache.set_cache(CacheKeys.step_goal(USER_ID), 8000)
        await self.go_offline()

        state = await StepsResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertTrue(state.is_from_cache)
        self.assertEqual((state.step_goal, state.step_count, state.remaining_steps), (8000, 0, 8000))

    async def test_water_failed_fetch_uses_todays_cache(self) -> None:
        await self.go_online()
        resource = WaterResource(self.client, self.context, self.session)
        await resource.refresh(WEDNESDAY_MORNING)
        resource.add_water(250, WEDNESDAY_MORNING)
        self.client.failing_tables.add("water_goals")

        state = await WaterResource(self.client, self.context, self.session).refresh(WEDNESDAY_MORNING)

        self.assertTrue(state.is_from_cache)
        self.assertEqual(state.water_goal, 3000)
        self.assertEqual(state.water_intake, 750)
        self.assertEqual(state.remaining_ml, 2250)
        self.assertEqual(state.progress_percentage, 25)


class TestPrecache(OfflineResourceTestCase):
    async def test_precache_fills_every_resource_cache(self) -> None:
        await self.go_online()
        states = await precache_user_data(self.client, self.context, self.session, WEDNESDAY_MORNING)

        self.assertEqual(set(states), {"workout", "nutrition", "supplements", "steps", "water"})
        self.assertTrue(all(not s.is_from_cache and s.error is None for s in states.values()))
        for key in (
            CacheKeys.workout_program(USER_ID),
            CacheKeys.nutrition_plan(USER_ID),
            CacheKeys.todays_supplements(USER_ID),
            CacheKeys.todays_steps(USER_ID),
            CacheKeys.todays_water(USER_ID),
        ):
            self.assertTrue(self.cache.has_cache(key), key)

    async def test_precache_stores_profile_previous_sets_and_home_stats(self) -> None:
        self.client.rows("workout_sessions").append(
            {"id": "ws1", "workout_id": "w1", "user_id": USER_ID, "start_time": "2024-04-29T17:00:00", "end_time": "2024-04-29T18:00:00"}
        )
        self.client.rows("completed_exercise_sets").append(
            {"workout_session_id": "ws1", "exercise_instance_id": "ei1", "set_order": 1, "weight": 80, "reps": 8, "is_completed": True}
        )
        await self.go_online()
        await precache_user_data(self.client, self.context, self.session, WEDNESDAY_MORNING)

        self.assertEqual(self.cache.get_cache(CacheKeys.profile(USER_ID))["id"], PROFILE["id"])
        self.assertTrue(self.cache.has_cache(CacheKeys.previous_workout_sets(USER_ID, "w1")))
        self.assertFalse(self.cache.has_cache(CacheKeys.previous_workout_sets(USER_ID, "w3")))

        stats = get_cached_home_stats(self.cache, USER_ID)
        self.assertEqual(stats.date, TODAY)
        self.assertTrue(stats.has_workout_program)
        self.assertTrue(stats.has_workout_today)
        self.assertEqual(stats.workouts_completed, 0)
        self.assertEqual((stats.meals_logged, stats.meals_planned), (0, 2))
        self.assertEqual((stats.steps_count, stats.steps_goal), (2345, 10000))
        self.assertEqual((stats.water_intake, stats.water_goal), (500, 3000))
        self.assertEqual((stats.supplements_taken, stats.supplements_total), (0, 2))
        self.assertEqual(stats.days_since_check_in, 3)
        self.assertEqual(stats.check_in_status, "complete")

    async def test_precache_offline_skips_the_backend_extras(self) -> None:
        await self.go_offline()
        await precache_user_data(self.client, self.context, self.session, WEDNESDAY_MORNING)

        self.assertTrue(self.cache.has_cache(CacheKeys.profile(USER_ID)))
        self.assertIsNone(get_cached_home_stats(self.cache, USER_ID))
        self.assertEqual(self.client.calls, [])

    def test_check_in_status(self) -> None:
        self.assertEqual(check_in_status(None), "todo")
        self.assertEqual(check_in_status(7), "complete")
        self.assertEqual(check_in_status(8), "overdue")


if __name__ == "__main__":
    unittest.main()

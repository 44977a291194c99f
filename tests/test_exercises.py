# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import unittest
from datetime import datetime

import httpx
from fastapi.testclient import TestClient

from fitcoach.api import app
from fitcoach.deps import get_optional_backend
from fitcoach.exercises.api import get_exercise_catalog
from fitcoach.exercises.catalog import ExerciseCatalog, format_heygainz_exercise
from fitcoach.exercises.matching import (
    calculate_string_similarity,
    fetch_all_exercises,
    find_best_exercise_match,
    levenshtein,
    standardize_equipment,
)
from fitcoach.exercises.models import DbExercise
from fitcoach.exercises.schedule import clean_exercise_name, get_todays_workout, is_effective_rest_day
from fitcoach.exercises.service import get_last_workout_sets
from tests.fakes import FakeClient

EXERCISES = [
    DbExercise(id="1", name="Barbell Bench Press", equipment="Barbell", primary_muscle_group="Chest"),
    DbExercise(id="2", name="Dumbbell Bench Press", equipment="Dumbbell", primary_muscle_group="Chest"),
    DbExercise(id="3", name="Squat", equipment="Barbell", primary_muscle_group="Quadriceps", target="Glutes"),
    DbExercise(id="4", name="Squat", equipment="Smith Machine", primary_muscle_group="Quadriceps"),
]


class TestSimilarity(unittest.TestCase):
    def test_levenshtein(self) -> None:
        self.assertEqual(levenshtein("kitten", "sitting"), 3)
        self.assertEqual(levenshtein("", "abc"), 3)
        self.assertEqual(levenshtein("same", "same"), 0)

    def test_similarity_bounds(self) -> None:
        self.assertEqual(calculate_string_similarity("squat", "squat"), 1.0)
        self.assertEqual(calculate_string_similarity("", "squat"), 0.0)
        self.assertAlmostEqual(calculate_string_similarity("abc", "abd"), 2 / 3)

    def test_standardize_equipment(self) -> None:
        self.assertEqual(standardize_equipment("Olympic Barbell"), "Barbell")
        self.assertEqual(standardize_equipment("Leverage Machine"), "Lever")
        self.assertEqual(standardize_equipment("Bands"), "Bands")
        self.assertEqual(standardize_equipment(None), "")


class TestFindBestMatch(unittest.TestCase):
    def test_exact_name_is_case_insensitive(self) -> None:
        self.assertEqual(find_best_exercise_match("barbell bench press", None, None, EXERCISES).id, "1")

    def test_exact_name_prefers_matching_equipment(self) -> None:
        self.assertEqual(find_best_exercise_match("Squat", "Quadriceps", "Smith Machine", EXERCISES).id, "4")
        # nothing fits the hints: first exact name wins
        self.assertEqual(find_best_exercise_match("Squat", "Back", "Kettlebell", EXERCISES).id, "3")

    def test_fuzzy_match_uses_equipment_and_muscle(self) -> None:
        self.assertEqual(find_best_exercise_match("Bench Press", "Chest", "Dumbbell", EXERCISES).id, "2")
        self.assertEqual(find_best_exercise_match("Bench Press", "Chest", "Olympic Barbell", EXERCISES).id, "1")

    def test_weak_matches_are_rejected(self) -> None:
        self.assertIsNone(find_best_exercise_match("Zzz", None, None, EXERCISES))
        self.assertIsNone(find_best_exercise_match("", "Chest", None, EXERCISES))
        self.assertIsNone(find_best_exercise_match("Squat", None, None, []))


class TestFetchAllExercises(unittest.IsolatedAsyncioTestCase):
    async def test_ids_are_strings(self) -> None:
        client = FakeClient({"exercises": [{"id": 7, "name": "Deadlift"}, {"id": 8, "name": "Lunge"}]})
        found = await fetch_all_exercises(client)
        self.assertEqual([e.id for e in found], ["7", "8"])

    async def test_failing_page_returns_what_was_read(self) -> None:
        client = FakeClient()
        client.failing_tables.add("exercises")
        with self.assertLogs("fitcoach.exercises.matching", level="ERROR"):
            self.assertEqual(await fetch_all_exercises(client), [])


class TestSchedule(unittest.TestCase):
    WORKOUTS = [
        {"id": "w1", "name": "Push", "day_of_week": 1, "exercise_instances": [{"id": "e1"}]},
        {"id": "w3", "name": "Active Rest", "day_of_week": 3, "exercise_instances": [{"id": "e3"}]},
    ]

    def test_todays_workout(self) -> None:
        self.assertEqual(get_todays_workout(self.WORKOUTS, datetime(2024, 4, 29))["id"], "w1")
        self.assertIsNone(get_todays_workout(self.WORKOUTS, datetime(2024, 4, 30)))

    def test_effective_rest_day(self) -> None:
        self.assertTrue(is_effective_rest_day(None))
        self.assertTrue(is_effective_rest_day({"name": "Legs", "exercise_instances": []}))
        self.assertTrue(is_effective_rest_day(self.WORKOUTS[1]))
        self.assertFalse(is_effective_rest_day(self.WORKOUTS[0]))

    def test_clean_exercise_name(self) -> None:
        self.assertEqual(clean_exercise_name("Bench Press (Barbell)"), "Bench Press")
        self.assertEqual(clean_exercise_name("Curl (EZ)  Bar "), "Curl Bar")
        self.assertEqual(clean_exercise_name(""), "")


class TestLastWorkoutSets(unittest.IsolatedAsyncioTestCase):
    async def test_sets_of_latest_completed_session(self) -> None:
        client = FakeClient(
            {
                "workout_sessions": [
                    {"id": "s1", "workout_id": "w1", "user_id": "u1", "end_time": "2024-04-22T18:00:00"},
                    {"id": "s2", "workout_id": "w1", "user_id": "u1", "end_time": "2024-04-29T18:00:00"},
                    {"id": "s3", "workout_id": "w1", "user_id": "u1", "end_time": None},
                ],
                "completed_exercise_sets": [
                    {"workout_session_id": "s2", "exercise_instance_id": "e1", "set_order": 2, "weight": 62.5, "reps": 8, "is_completed": True},
                    {"workout_session_id": "s2", "exercise_instance_id": "e1", "set_order": 1, "weight": 60, "reps": 10, "is_completed": True},
                    {"workout_session_id": "s2", "exercise_instance_id": "e1", "set_order": 3, "weight": 65, "reps": 0, "is_completed": False},
                    {"workout_session_id": "s1", "exercise_instance_id": "e1", "set_order": 1, "weight": 55, "reps": 10, "is_completed": True},
                ],
            }
        )
        sets = await get_last_workout_sets(client, "w1", "u1")
        self.assertEqual([(s.set_order, s.weight, s.reps) for s in sets["e1"]], [(1, "60", 10), (2, "62.5", 8)])


def _heygainz_page(items, next_url):
    return {"data": items, "total": 3, "next_page_url": next_url}


RAW_SQUAT = {
    "id": 11,
    "name": "Barbell Squat",
    "seo_description": "King of leg exercises",
    "gif_url": "https://cdn.example.com/squat.gif",
    "muscles": [
        {"name": "Quadriceps", "body_part": "Legs", "pivot": {"type": "primary"}},
        {"name": "Glutes", "body_part": "Legs", "pivot": {"type": "secondary"}},
    ],
    "description": json.dumps({"equipment": "Barbell", "body_part": "Upper Legs"}),
    "instructions": ["Brace", "Sit down", "Stand up"],
    "type": "strength",
}


class TestCatalog(unittest.IsolatedAsyncioTestCase):
    def test_format_heygainz_exercise(self) -> None:
        ex = format_heygainz_exercise(RAW_SQUAT)
        self.assertEqual(ex.id, "11")
        self.assertEqual(ex.category, "Legs")
        self.assertEqual(ex.muscles, ["Quadriceps"])
        self.assertEqual(ex.equipment, ["Barbell"])
        self.assertEqual(ex.image, "https://cdn.example.com/squat.gif")

    def test_format_without_muscles_uses_the_description(self) -> None:
        ex = format_heygainz_exercise({"id": 1, "name": "Plank", "description": '{"body_part": "Waist"}'})
        self.assertEqual((ex.category, ex.equipment, ex.description), ("Waist", [], ""))
        self.assertEqual(format_heygainz_exercise({"id": 2, "description": "not json"}).category, "Uncategorized")

    async def test_pages_are_fetched_once(self) -> None:
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            page = int(request.url.params["page"])
            if page == 1:
                return httpx.Response(200, json=_heygainz_page([RAW_SQUAT, {"id": 12, "name": "Front Squat"}], "next"))
            return httpx.Response(200, json=_heygainz_page([{"id": 13, "name": "Deadlift"}], None))

        catalog = ExerciseCatalog("https://heygainz.test/api", transport=httpx.MockTransport(handler))
        found = await catalog.get_all()
        self.assertEqual([e.id for e in found], ["11", "12", "13"])
        self.assertTrue(catalog.is_cached)

        self.assertEqual([e.id for e in await catalog.search("squat")], ["11", "12"])
        self.assertEqual((await catalog.get_by_id("13")).name, "Deadlift")
        self.assertIsNone(await catalog.get_by_id("99"))
        self.assertEqual(len(requests), 2)
        self.assertEqual(requests[0].url.params["per_page"], "100")

    async def test_failure_returns_empty_and_is_not_cached(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        catalog = ExerciseCatalog("https://heygainz.test/api", transport=transport)
        with self.assertLogs("fitcoach.exercises.catalog", level="ERROR"):
            self.assertEqual(await catalog.get_all(), [])
        self.assertFalse(catalog.is_cached)


LIBRARY_ROWS = [
    {"id": 1, "name": "Barbell Bench Press", "equipment": "Barbell", "primary_muscle_group": "Chest"},
    {"id": 2, "name": "Dumbbell Bench Press", "equipment": "Dumbbell", "primary_muscle_group": "Chest"},
]


class TestExercisesApi(unittest.TestCase):
    def setUp(self) -> None:
        self.requests = []
        self.failing = False

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            if self.failing:
                return httpx.Response(503)
            return httpx.Response(200, json=_heygainz_page([RAW_SQUAT, {"id": 13, "name": "Deadlift"}], None))

        self.catalog = ExerciseCatalog("https://heygainz.test/api", transport=httpx.MockTransport(handler))
        self.backend = FakeClient({"exercises": [dict(r) for r in LIBRARY_ROWS]})
        app.dependency_overrides[get_exercise_catalog] = lambda: self.catalog
        app.dependency_overrides[get_optional_backend] = lambda: self.backend
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)
        self.addCleanup(self.client.close)

    def test_list_and_search(self) -> None:
        resp = self.client.get("/api/exercises/catalog")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([e["id"] for e in resp.json()["items"]], ["11", "13"])

        resp = self.client.get("/api/exercises/catalog", params={"q": "squat"})
        self.assertEqual(resp.json()["total"], 1)
        self.assertEqual(resp.json()["items"][0]["equipment"], ["Barbell"])
        self.assertEqual(len(self.requests), 1)

    def test_get_by_id(self) -> None:
        self.assertEqual(self.client.get("/api/exercises/catalog/13").json()["name"], "Deadlift")
        self.assertEqual(self.client.get("/api/exercises/catalog/99").status_code, 404)

    def test_unreachable_catalogue(self) -> None:
        self.failing = True
        with self.assertLogs("fitcoach.exercises.catalog", level="ERROR"):
            resp = self.client.get("/api/exercises/catalog")
        self.assertEqual(resp.status_code, 502)

    def test_match(self) -> None:
        resp = self.client.post(
            "/api/exercises/match",
            json={"name": "Dumbbell Bench Press", "muscle_group": "Chest", "equipment": "Dumbbells"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["id"], "2")
        self.assertEqual(self.client.post("/api/exercises/match", json={"name": "Zzz"}).status_code, 404)

    def test_match_without_backend(self) -> None:
        app.dependency_overrides[get_optional_backend] = lambda: None
        resp = self.client.post("/api/exercises/match", json={"name": "Squat"})
        self.assertEqual(resp.status_code, 503)


if __name__ == "__main__":
    unittest.main()

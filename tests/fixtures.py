# -*- coding: utf-8 -*-
"""Sample backend rows shared by the service, offline and reminder tests.

2024-05-01 is a Wednesday (day_of_week 3).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

USER_ID = "u1"
PROFILE_ID = "p1"

WEDNESDAY_MORNING = datetime(2024, 5, 1, 9, 0)
TODAY = "2024-05-01"

PROFILE = {
    "id": PROFILE_ID,
    "user_id": USER_ID,
    "nutrition_wakeup_time_of_day": "06:00",
    "nutrition_bed_time_of_day": "22:00",
    "training_time_of_day": "17:00",
}

CHICKEN = {
    "id": "f1",
    "food_name": "Chicken breast",
    "calories_per_100g": 165,
    "protein_per_100g": 31,
    "carbs_per_100g": 0,
    "fat_per_100g": 3.6,
}

RICE = {
    "id": "f2",
    "food_name": "White rice, cooked",
    "calories_per_100g": 130,
    "protein_per_100g": 2.7,
    "carbs_per_100g": 28,
    "fat_per_100g": 0.3,
    "serving_size_g": 150,
}


def backend_tables() -> Dict[str, List[Dict[str, Any]]]:
    return {
        "profiles": [dict(PROFILE)],
        "assigned_plans": [
            {
                "id": "ap1",
                "athlete_id": PROFILE_ID,
                "program_template_id": "t1",
                "nutrition_plan_id": None,
                "assigned_at": "2024-04-01T00:00:00",
                "created_at": "2024-04-01T00:00:00",
            },
            {
                "id": "ap2",
                "athlete_id": PROFILE_ID,
                "program_template_id": None,
                "nutrition_plan_id": "np1",
                "assigned_at": "2024-04-02T00:00:00",
                "created_at": "2024-04-02T00:00:00",
            },
        ],
        "program_templates": [{"id": "t1", "name": "Push Pull Legs", "description": "", "version": 1}],
        "workouts": [
            {"id": "w1", "program_template_id": "t1", "name": "Push", "day_of_week": 1, "order_in_program": 1},
            {"id": "w3", "program_template_id": "t1", "name": "Pull", "day_of_week": 3, "order_in_program": 2},
            {"id": "w5", "program_template_id": "t1", "name": "Rest Day", "day_of_week": 5, "order_in_program": 3},
        ],
        "exercise_instances": [
            {"id": "ei1", "workout_id": "w1", "exercise_name": "Bench Press", "order_in_workout": 1},
            {"id": "ei3", "workout_id": "w3", "exercise_name": "Barbell Row", "order_in_workout": 1},
        ],
        "workout_sessions": [],
        "nutrition_plans": [
            {
                "id": "np1",
                "name": "Recomp",
                "total_calories": 2500,
                "protein_grams": 180,
                "carbohydrate_grams": 250,
                "fat_grams": 70,
            }
        ],
        "meals": [
            {"id": "m1", "nutrition_plan_id": "np1", "name": "Breakfast", "day_type": "Training Day", "time_suggestion": "07:00", "order_in_plan": 1},
            {"id": "m2", "nutrition_plan_id": "np1", "name": "Lunch", "day_type": "Training Day", "time_suggestion": "12:30", "order_in_plan": 2},
            {"id": "m3", "nutrition_plan_id": "np1", "name": "Rest breakfast", "day_type": "Rest Day", "time_suggestion": "08:00", "order_in_plan": 3},
        ],
        "meal_food_items": [
            {"id": "mf1", "meal_id": "m1", "food_item_id": "f2", "quantity": 1, "unit": "serving"},
            {"id": "mf2", "meal_id": "m2", "food_item_id": "f1", "quantity": 200, "unit": "g"},
        ],
        "food_items": [dict(CHICKEN), dict(RICE)],
        "meal_logs": [],
        "athlete_supplements": [
            {"id": "as1", "user_id": USER_ID, "supplement_id": "s1", "schedule": "Morning", "start_date": "2024-04-01", "end_date": None},
            {"id": "as2", "user_id": USER_ID, "supplement_id": "s2", "schedule": "Before Bed", "start_date": "2024-04-01", "end_date": None},
            {"id": "as3", "user_id": USER_ID, "supplement_id": "s1", "schedule": "Evening", "start_date": "2024-01-01", "end_date": "2024-02-01"},
        ],
        "supplements": [
            {"id": "s1", "name": "Creatine", "category": "Performance"},
            {"id": "s2", "name": "Magnesium", "category": "Minerals"},
        ],
        "supplement_logs": [],
        "water_goals": [{"user_id": USER_ID, "water_goal_ml": 3000}],
        "water_tracking": [{"user_id": USER_ID, "date": TODAY, "amount_ml": 500}],
        "step_goals": [{"user_id": PROFILE_ID, "daily_steps": 10000, "is_active": True, "assigned_at": "2024-04-01"}],
        "step_entries": [{"user_id": USER_ID, "date": TODAY, "step_count": 2345}],
        "check_ins": [{"user_id": USER_ID, "check_in_date": "2024-04-28"}],
    }

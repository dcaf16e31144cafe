#!/usr/bin/env python3
"""Seed a user's week plan with common bodyweight exercises and categories.

Usage: seed_exercises.py [USER_ID]   (defaults to the CLI user)
"""

import asyncio
import sys

from brainwash.config import config
from brainwash.daykeys import add_days, today_key, week_start
from brainwash.database.connection import db_manager
from brainwash.workout import WorkoutService

SAMPLE_CATEGORIES = [
    {"name": "Push", "color": "#ef4444"},
    {"name": "Pull", "color": "#3b82f6"},
    {"name": "Legs", "color": "#22c55e"},
    {"name": "Core", "color": "#eab308"},
]

# Weekday offset from Monday -> (exercise, category)
SAMPLE_PLAN = {
    0: [("Push Ups", "Push"), ("Dips", "Push"), ("Plank", "Core")],
    1: [("Pull Ups", "Pull"), ("Australian Rows", "Pull"), ("Hollow Hold", "Core")],
    2: [("Squats", "Legs"), ("Lunges", "Legs"), ("Wall Sit", "Legs")],
    3: [("Pike Push Ups", "Push"), ("Diamond Push Ups", "Push"), ("Side Plank", "Core")],
    4: [("Chin Ups", "Pull"), ("Inverted Rows", "Pull"), ("Leg Raises", "Core")],
    5: [("Bulgarian Split Squats", "Legs"), ("Glute Bridges", "Legs"), ("Plank", "Core")],
}


async def seed_exercises(user_id: int):
    """Create categories and a weekly plan for one user. Safe to re-run."""
    print(f"Seeding exercises for user {user_id}...")
    service = WorkoutService(db_manager)

    try:
        await db_manager.create_tables()
        monday = week_start(today_key(service.tz))

        categories = {}
        for data in SAMPLE_CATEGORIES:
            category = await service.add_category(user_id, data["name"], data["color"])
            categories[category.name] = category
            print(f"  Category: {category.name} ({category.color})")

        created = 0
        for offset, exercises in SAMPLE_PLAN.items():
            day_key = add_days(monday, offset)
            for name, category_name in exercises:
                exercise = await service.add_exercise(user_id, day_key, name)
                category_id = categories[category_name].id
                if category_id not in exercise.category_ids:
                    await service.toggle_exercise_category(user_id, exercise.id, category_id)
                created += 1
                print(f"  {service.bucket(day_key).weekday.value}: {exercise.name} [{category_name}]")

        print(f"Planned {created} exercises.")
        return True

    except Exception as e:
        print(f"Failed to seed exercises: {e}")
        import traceback

        traceback.print_exc()
        return False
    finally:
        await db_manager.close()


if __name__ == "__main__":
    target = int(sys.argv[1]) if len(sys.argv) > 1 else config.app.cli_user_id
    success = asyncio.run(seed_exercises(target))
    sys.exit(0 if success else 1)

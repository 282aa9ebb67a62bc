"""
Workout prompt builder.

Turns a ProfileSnapshot and a catalog snapshot into the system/user prompt
pair for one day's generation. The model is told to choose names only from
the equipment-filtered vocabulary listed in the prompt; anything else it
invents fails resolution later.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List

from services.exercise_catalog import CatalogEntry, ExerciseCatalog
from services.profile_snapshot import ProfileSnapshot

# Category order is the order they appear in the prompt
CATEGORY_LABELS = {
    "warmup": "Warm-up",
    "upper_body": "Upper Body",
    "lower_body": "Lower Body",
    "core": "Core",
    "full_body": "Full Body",
    "cardio": "Cardio",
    "recovery": "Recovery / Stretching",
}

# Shown when the filtered catalog has nothing for a category
CATEGORY_DEFAULTS = {
    "warmup": ["Jumping Jacks", "Arm Circles"],
    "upper_body": ["Push-Ups", "Pull-Ups"],
    "lower_body": ["Bodyweight Squats", "Lunges"],
    "core": ["Plank"],
    "full_body": ["Burpees", "Mountain Climbers"],
    "cardio": ["High Knees", "Jumping Jacks"],
    "recovery": ["Child's Pose", "Standing Forward Bend"],
}

UPPER_BODY_PARTS = {"chest", "back", "shoulders", "arms", "biceps", "triceps"}
LOWER_BODY_PARTS = {"legs", "glutes", "hamstrings", "quads", "calves"}

MAIN_BLOCK_MIN_ITEMS = 3
MAIN_BLOCK_MAX_ITEMS = 6


@dataclass(frozen=True)
class GenerationRequest:
    day: str
    system_prompt: str
    user_prompt: str
    vocabulary: Dict[str, List[str]] = field(default_factory=dict)


def categorize(entry: CatalogEntry) -> List[str]:
    """Prompt categories for an entry (may be more than one, may be none)."""
    body_part = (entry.body_part or "").lower()
    pattern = (entry.pattern or "").lower()
    categories = []
    if body_part == "warmup" or pattern == "mobility":
        categories.append("warmup")
    if body_part in UPPER_BODY_PARTS:
        categories.append("upper_body")
    if body_part in LOWER_BODY_PARTS:
        categories.append("lower_body")
    if body_part == "core":
        categories.append("core")
    if body_part == "full":
        categories.append("full_body")
    if body_part == "cardio" or pattern == "locomotion":
        categories.append("cardio")
    if body_part == "flexibility" or pattern == "stretch":
        categories.append("recovery")
    return categories


def build_vocabulary(profile: ProfileSnapshot, catalog: ExerciseCatalog) -> Dict[str, List[str]]:
    vocabulary: Dict[str, List[str]] = {key: [] for key in CATEGORY_LABELS}
    for entry in catalog.filter_by_equipment(profile.equipment):
        for category in categorize(entry):
            vocabulary[category].append(entry.name)
    return vocabulary


def _format_library(vocabulary: Dict[str, List[str]]) -> str:
    lines = []
    for key, label in CATEGORY_LABELS.items():
        names = vocabulary.get(key) or CATEGORY_DEFAULTS[key]
        lines.append(f"{label}: {', '.join(names)}")
    return "\n".join(lines)


def build_generation_request(profile: ProfileSnapshot, catalog: ExerciseCatalog, day: date) -> GenerationRequest:
    """Build the prompt pair and closed vocabulary for one day's workout."""
    day_str = day.isoformat()
    vocabulary = build_vocabulary(profile, catalog)
    equipment = ", ".join(profile.equipment)
    focus = ", ".join(profile.focus_areas)
    duration = profile.session_duration_min

    system_prompt = f"""You are an expert fitness coach generating a structured workout.

CRITICAL: Choose ONLY exercises that exist in the exercise library below. Use the EXACT names provided.

Available Exercise Library:
{_format_library(vocabulary)}

User Profile:
- Goal: {profile.goal}
- Focus Areas: {focus}
- Available Equipment: {equipment}
- Target Duration: {duration} minutes
- Coaching Style: {profile.coaching_style}
- Injuries/Exclusions: {profile.injuries}
- Cardio Preference: {profile.cardio_preference} (only include cardio if 'love' or 'like')

Return a workout with EXACTLY this JSON structure:
{{
  "date": "{day_str}",
  "title": "Descriptive workout title",
  "duration_min": {duration},
  "coach_notes": "Brief note in the user's coaching style",
  "blocks": [
    {{"type": "warmup", "items": [
      {{"exercise_id": 1, "name": "Exercise name", "sets": 1, "reps": 10, "rest_sec": 30}}
    ]}},
    {{"type": "main", "items": [
      {{"exercise_id": 2, "name": "Exercise name", "sets": 3, "reps": 12, "load": "bodyweight", "rest_sec": 60}}
    ]}},
    {{"type": "recovery", "items": [
      {{"exercise_id": 3, "name": "Stretch name", "sets": 1, "reps": "30s hold", "rest_sec": 0}}
    ]}}
  ]
}}

Requirements:
- EXACTLY 1 warmup block with at least 1 item
- EXACTLY 1 main block with {MAIN_BLOCK_MIN_ITEMS}-{MAIN_BLOCK_MAX_ITEMS} items
- EXACTLY 1 recovery block with at least 1 item
- Use ONLY exercise names from the library above, spelled exactly as listed
- "sets" is a positive integer; "reps" is a positive integer or a duration string like "30s hold"
- Avoid movements that aggravate the listed injuries
- Return ONLY valid JSON, no explanation text"""

    if profile.injuries and profile.injuries.lower() != "none":
        injury_line = f"Avoid exercises that might aggravate: {profile.injuries}."
    else:
        injury_line = "No injury limitations."

    user_prompt = (
        f"Generate a personalized {profile.goal}-focused workout for {day_str}, "
        f"{duration} minutes. Focus on: {focus}. "
        f"Use a {profile.coaching_style} coaching tone in coach_notes. "
        f"Equipment available: {equipment}. {injury_line}"
    )

    return GenerationRequest(
        day=day_str,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        vocabulary=vocabulary,
    )

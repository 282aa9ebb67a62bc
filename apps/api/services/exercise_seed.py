"""
Built-in starter exercises.

Used in two places:
- the resolver's fallback registry when the exercises table cannot be read
- scripts/seed_exercise_catalog.py when no catalog file is supplied

Ids are fixed so fallback resolution is stable across processes.
"""
from typing import Any, Dict, List

SEED_EXERCISES: List[Dict[str, Any]] = [
    {"id": 1, "slug": "jumping-jacks", "name": "Jumping Jacks", "aliases": ["star jumps"],
     "body_part": "cardio", "equipment": ["bodyweight"], "pattern": "locomotion"},
    {"id": 2, "slug": "push-ups", "name": "Push-Ups", "aliases": ["pushups", "press-ups"],
     "body_part": "chest", "equipment": ["bodyweight"], "pattern": "horizontal_push"},
    {"id": 3, "slug": "pull-ups", "name": "Pull-Ups", "aliases": ["chin-up", "pullup"],
     "body_part": "back", "equipment": ["pull-up bar"], "pattern": "vertical_pull"},
    {"id": 4, "slug": "bodyweight-squats", "name": "Bodyweight Squats", "aliases": ["air squats", "squats"],
     "body_part": "legs", "equipment": ["bodyweight"], "pattern": "squat"},
    {"id": 5, "slug": "lunges", "name": "Lunges", "aliases": ["forward lunge"],
     "body_part": "legs", "equipment": ["bodyweight"], "pattern": "lunge", "is_unilateral": True},
    {"id": 6, "slug": "plank", "name": "Plank", "aliases": ["front plank"],
     "body_part": "core", "equipment": ["bodyweight"], "pattern": "anti_extension"},
    {"id": 7, "slug": "burpees", "name": "Burpees", "aliases": ["burpee"],
     "body_part": "full", "equipment": ["bodyweight"], "pattern": "full_body"},
    {"id": 8, "slug": "mountain-climbers", "name": "Mountain Climbers", "aliases": ["mountain climber"],
     "body_part": "full", "equipment": ["bodyweight"], "pattern": "full_body"},
    {"id": 9, "slug": "tricep-dips", "name": "Tricep Dips", "aliases": ["dips", "chair dips"],
     "body_part": "arms", "equipment": ["bodyweight"], "pattern": "vertical_push"},
    {"id": 10, "slug": "glute-bridge", "name": "Glute Bridge", "aliases": ["bridge"],
     "body_part": "legs", "equipment": ["bodyweight"], "pattern": "hinge"},
    {"id": 11, "slug": "childs-pose", "name": "Child's Pose", "aliases": ["childs pose", "balasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 12, "slug": "standing-forward-bend", "name": "Standing Forward Bend",
     "aliases": ["forward fold", "toe touch", "uttanasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 13, "slug": "arm-circles", "name": "Arm Circles", "aliases": ["arm swings"],
     "body_part": "shoulders", "equipment": ["bodyweight"], "pattern": "mobility"},
    {"id": 14, "slug": "high-knees", "name": "High Knees", "aliases": ["knee ups"],
     "body_part": "cardio", "equipment": ["bodyweight"], "pattern": "locomotion"},
    {"id": 15, "slug": "butt-kicks", "name": "Butt Kicks", "aliases": ["heel kicks"],
     "body_part": "cardio", "equipment": ["bodyweight"], "pattern": "locomotion"},
    {"id": 16, "slug": "cat-cow-stretch", "name": "Cat-Cow Stretch", "aliases": ["cat cow", "marjaryasana bitilasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "mobility"},
    {"id": 17, "slug": "pigeon-pose", "name": "Pigeon Pose", "aliases": ["eka pada rajakapotasana", "hip opener"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 18, "slug": "seated-forward-fold", "name": "Seated Forward Fold", "aliases": ["paschimottanasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 19, "slug": "supine-spinal-twist", "name": "Supine Spinal Twist",
     "aliases": ["reclined twist", "supta matsyendrasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 20, "slug": "butterfly-stretch", "name": "Butterfly Stretch", "aliases": ["bound angle pose", "baddha konasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 21, "slug": "cobra-stretch", "name": "Cobra Stretch", "aliases": ["bhujangasana", "cobra pose"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 22, "slug": "thread-the-needle", "name": "Thread the Needle", "aliases": ["supine figure four stretch"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 23, "slug": "happy-baby-pose", "name": "Happy Baby Pose", "aliases": ["ananda balasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 24, "slug": "wide-grip-pull-ups", "name": "Wide Grip Pull-Ups", "aliases": ["wide pull ups"],
     "body_part": "back", "equipment": ["pull-up bar"], "pattern": "vertical_pull"},
    {"id": 25, "slug": "downward-dog", "name": "Downward Dog",
     "aliases": ["downward facing dog", "adho mukha svanasana"],
     "body_part": "flexibility", "equipment": ["bodyweight"], "pattern": "stretch"},
    {"id": 26, "slug": "inverted-row", "name": "Inverted Row",
     "aliases": ["bodyweight row", "australian pull up", "horizontal pull up"],
     "body_part": "back", "equipment": ["bodyweight"], "pattern": "horizontal_pull"},
]

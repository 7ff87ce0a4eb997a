"""In-process exercise catalog used by the exercise info tool."""

from pydantic import BaseModel, Field


class ExerciseDetails(BaseModel):
    id: str
    name: str
    description: str
    target_muscles: list[str]
    instructions: list[str] = Field(default_factory=list)
    common_mistakes: list[str] = Field(default_factory=list)
    video_url: str | None = None


EXERCISE_CATALOG: list[ExerciseDetails] = [
    ExerciseDetails(
        id="bench_press",
        name="Bench Press",
        description="A compound exercise that targets the chest, shoulders, and triceps.",
        target_muscles=["chest", "triceps", "shoulders"],
        instructions=[
            "Lie flat on a bench with your feet flat on the floor.",
            "Grip the barbell with hands slightly wider than shoulder-width apart.",
            "Lower the bar to your mid-chest.",
            "Push the bar back up until your arms are fully extended.",
        ],
        common_mistakes=["Arching the back too much.", "Bouncing the bar off the chest."],
        video_url="https://www.youtube.com/watch?v=example_bench_press",
    ),
    ExerciseDetails(
        id="squat",
        name="Squat",
        description="A compound exercise that primarily targets the thighs (quadriceps, hamstrings) and glutes.",
        target_muscles=["quadriceps", "hamstrings", "glutes", "core"],
        instructions=[
            "Stand with your feet shoulder-width apart.",
            "Lower your hips as if sitting back in a chair, keeping your chest up and back straight.",
            "Go as low as comfortable, ideally until your thighs are parallel to the floor.",
            "Push back up to the starting position.",
        ],
        common_mistakes=["Letting the knees cave inward.", "Lifting the heels off the floor."],
        video_url="https://www.youtube.com/watch?v=example_squat",
    ),
    ExerciseDetails(
        id="deadlift",
        name="Deadlift",
        description="A compound exercise that works multiple muscle groups including the back, legs, and core.",
        target_muscles=["lower back", "glutes", "hamstrings", "quadriceps", "traps", "forearms"],
        instructions=[
            "Stand with mid-foot under the barbell.",
            "Bend over and grip the bar with a shoulder-width grip.",
            "Bend your knees until your shins touch the bar.",
            "Lift your chest up and straighten your lower back.",
            "Take a big breath, hold it, and stand up with the weight.",
        ],
        video_url="https://www.youtube.com/watch?v=example_deadlift",
    ),
    ExerciseDetails(
        id="pull_up",
        name="Pull Up",
        description="An upper-body compound pulling exercise.",
        target_muscles=["latissimus dorsi", "biceps", "middle back", "shoulders"],
        instructions=[
            "Grab the pull-up bar with an overhand grip, slightly wider than shoulder-width.",
            "Hang with your arms fully extended.",
            "Pull your body up until your chin is over the bar.",
            "Lower your body back to the starting position in a controlled manner.",
        ],
    ),
    ExerciseDetails(
        id="push_up",
        name="Push Up",
        description="A bodyweight pushing exercise for the chest, shoulders, and triceps.",
        target_muscles=["chest", "triceps", "shoulders", "core"],
        instructions=[
            "Start in a plank with hands slightly wider than shoulder-width.",
            "Lower your chest until it nearly touches the floor.",
            "Press back up while keeping your body in a straight line.",
        ],
        common_mistakes=["Sagging hips.", "Flaring the elbows out to 90 degrees."],
    ),
]


def _normalize(name: str) -> str:
    return " ".join(name.lower().replace("_", " ").replace("-", " ").split())


def find_exercise(name: str) -> ExerciseDetails | None:
    """Find an exercise by name or id (case-insensitive).

    "pull-up", "pull up", "Pull_Up" and "pull_up" all resolve to the same entry.
    """
    if not name or not name.strip():
        return None
    wanted = _normalize(name)
    for exercise in EXERCISE_CATALOG:
        if _normalize(exercise.name) == wanted or _normalize(exercise.id) == wanted:
            return exercise
    # Plural forms ("squats", "push ups")
    if wanted.endswith("s"):
        return find_exercise(wanted[:-1])
    return None

import pytest

from gymagent.coach.memory import MemoryStore
from gymagent.coach.schemas.memory import ClarificationContext, ClarificationOption, Workout, WorkoutExercise


def _context() -> ClarificationContext:
    return ClarificationContext(
        original_intent_name="DOUBLE_WORKOUT",
        clarification_question_text="Which one?",
        options=[ClarificationOption(text="Double the sets", value="DOUBLE_SETS")],
        related_data={"workout_id": "w1"},
    )


def test_new_store_is_empty():
    store = MemoryStore("s1")

    assert store.current_workout is None
    assert store.pending_clarification is None
    assert store.working.last_action is None
    assert store.turns == []


def test_update_working_memory_overwrites_fields(workout_w1):
    store = MemoryStore("s1")
    store.update_working_memory(current_workout=workout_w1)

    replacement = Workout(id="w2", exercises=[])
    store.update_working_memory(current_workout=replacement)

    assert store.current_workout.id == "w2"


def test_update_working_memory_rejects_unknown_field():
    store = MemoryStore("s1")

    with pytest.raises(AttributeError):
        store.update_working_memory(not_a_field=1)


def test_clear_pending_clarification_resets_retries():
    store = MemoryStore("s1")
    store.update_working_memory(pending_clarification_context=_context(), clarification_retries=2)

    store.clear_pending_clarification()

    assert store.pending_clarification is None
    assert store.working.clarification_retries == 0


def test_turns_are_appended_in_order():
    store = MemoryStore("s1")
    store.add_conversation_turn("hi", "hello")
    store.add_conversation_turn("bye", "goodbye")

    assert [turn.user_input for turn in store.turns] == ["hi", "bye"]
    assert store.turns[0].timestamp <= store.turns[1].timestamp


def test_episodic_memory_drops_oldest_turns_beyond_cap():
    store = MemoryStore("s1", max_turns=3)
    for i in range(5):
        store.add_conversation_turn(f"msg {i}", f"reply {i}")

    assert len(store.turns) == 3
    assert [turn.user_input for turn in store.turns] == ["msg 2", "msg 3", "msg 4"]


def test_snapshot_is_a_deep_copy(workout_w1):
    store = MemoryStore("s1")
    store.set_current_workout(workout_w1)

    snapshot = store.snapshot()
    snapshot.current_workout.exercises[0].sets = 99

    assert store.current_workout.exercises[0].sets == 3


def test_snapshot_is_frozen(workout_w1):
    store = MemoryStore("s1")
    store.set_current_workout(workout_w1)
    snapshot = store.snapshot()

    with pytest.raises(Exception):
        snapshot.working_memory = store.working

    assert snapshot.current_workout == Workout(
        id="w1", exercises=[WorkoutExercise(exercise_id="e1", sets=3, reps=10)]
    )

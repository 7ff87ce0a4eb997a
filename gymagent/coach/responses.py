"""Assistant response text for one turn.

Priority: explicit error message, then clarification text, then the tool
result, then intent-specific canned text, then a generic fallback.
"""

import random

from gymagent.coach.clarification import render_clarification
from gymagent.coach.intents import IntentName
from gymagent.coach.schemas.memory import ClarificationDetails, Intent
from gymagent.tools.interfaces import ToolResult

NO_WORKOUT_TO_DOUBLE = "It looks like there's no active workout to double. Please start or select a workout first."
GENERIC_FALLBACK = "I'm not sure how to respond to that."
UNKNOWN_INTENT_REPLY = (
    "Sorry, I'm not quite sure how to help with that. You can ask me to create a workout, "
    "tell you about an exercise, or modify your current workout."
)
HELP_REPLY = (
    "I can help you with things like creating workout plans, modifying your current workout "
    "(like doubling sets or reps), and providing information about exercises. What would you like to do?"
)

GREETINGS = [
    "Hello! How can I assist with your fitness goals today?",
    "Hi there! What are we working on?",
    "Hey! Ready to get started?",
]
FAREWELLS = [
    "Goodbye! Keep up the great work!",
    "See you next time. Stay consistent!",
    "Alright, take care!",
]
THANKS_REPLIES = [
    "You're welcome!",
    "Happy to help!",
    "Anytime! Let me know if there's anything else.",
]


def _create_workout_reply(slots: dict) -> str:
    reply = "Okay, I can help you create a workout"
    if slots.get("muscle_group"):
        reply += f" for {slots['muscle_group']}"
    if slots.get("duration"):
        reply += f" for about {slots['duration']} minutes"
    level = slots.get("experience_level")
    if level:
        article = "an" if level[0].lower() in "aeiou" else "a"
        reply += f" at {article} {level} level"
    return reply + "."


_RANDOM_REPLIES: dict[str, list[str]] = {
    IntentName.GREETING.value: GREETINGS,
    IntentName.FAREWELL.value: FAREWELLS,
    IntentName.THANKS.value: THANKS_REPLIES,
}


def canned_reply(intent: Intent) -> str:
    slots = intent.slots or {}
    if intent.name in _RANDOM_REPLIES:
        return random.choice(_RANDOM_REPLIES[intent.name])
    if intent.name == IntentName.CANNOT_DOUBLE_NO_WORKOUT:
        return NO_WORKOUT_TO_DOUBLE
    if intent.name == IntentName.DOUBLE_WORKOUT:
        return "I need a bit more information to double the workout."
    if intent.name == IntentName.HELP:
        return HELP_REPLY
    if intent.name == IntentName.GET_EXERCISE_INFO:
        if slots.get("exercise_name"):
            return f'Okay, let me look up "{slots["exercise_name"]}".'
        return "Which exercise are you interested in?"
    if intent.name == IntentName.CREATE_WORKOUT:
        return _create_workout_reply(slots)
    return UNKNOWN_INTENT_REPLY


def generate_response(
    intent: Intent | None,
    clarification: ClarificationDetails | None = None,
    tool_result: ToolResult | None = None,
    error_message: str | None = None,
) -> str:
    if error_message:
        return error_message

    if clarification is not None:
        return render_clarification(clarification)

    if tool_result is not None:
        if tool_result.success:
            return tool_result.message or "Action completed successfully."
        return tool_result.error or "Sorry, I couldn't complete that action."

    if intent is not None:
        return canned_reply(intent)

    return GENERIC_FALLBACK

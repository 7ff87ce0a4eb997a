"""Rule-based intent classifier.

Deterministic keyword and phrase-template matching with slot extraction.
There is no trained model here. Rules are checked in priority order and the
first match wins; anything unmatched becomes UNKNOWN_INTENT.
"""

import re
from typing import Any

from loguru import logger

from gymagent.coach.intents import UNKNOWN_INTENT_CONFIDENCE, IntentName
from gymagent.coach.memory import MemoryStore
from gymagent.coach.schemas.memory import Intent
from gymagent.tools.navigation import resolve_page

DOUBLE_IT_PHRASE = "double it"

GREETING_KEYWORDS = ["hi", "hello", "hey", "good morning", "good afternoon", "good evening"]
FAREWELL_KEYWORDS = ["bye", "goodbye", "see you", "later", "farewell", "im off", "i'm off", "that is all", "thats all", "that's all"]
THANKS_KEYWORDS = ["thanks", "thank you", "thx", "appreciate it", "sounds good"]
HELP_KEYWORDS = ["help", "what can you do", "assist me", "assistance", "support"]

EXERCISE_INFO_PATTERNS = [
    re.compile(r"how (?:do i |to )(?:do |perform )?(?:a |an |the )?([\w\s-]+)"),
    re.compile(r"what (?:is|are) (?:a |an |the )?([\w\s-]+)"),
    re.compile(r"tell me about (?:a |an |the )?([\w\s-]+)"),
    re.compile(r"info(?:rmation)? (?:on|about) (?:a |an |the )?([\w\s-]+)"),
]

NAVIGATION_PATTERNS = [
    re.compile(r"^(?:take me to|go to|open|navigate to|show me) ([\w\s'-]+)$"),
]

CREATE_WORKOUT_KEYWORDS = ["create", "generate", "give me", "make me", "build me", "workout", "routine", "plan", "program"]

MUSCLE_GROUPS: dict[str, list[str]] = {
    "chest": ["chest", "pecs"],
    "legs": ["legs", "leg", "quads", "hamstrings", "glutes"],
    "back": ["back", "lats"],
    "shoulders": ["shoulders", "delts"],
    "arms": ["arms", "biceps", "triceps"],
    "full body": ["full body", "whole body", "total body"],
    "upper body": ["upper body"],
    "lower body": ["lower body"],
    "core": ["core", "abs"],
}

EXPERIENCE_LEVELS: dict[str, list[str]] = {
    "beginner": ["beginner", "newbie", "easy", "starting out"],
    "intermediate": ["intermediate", "mid-level", "moderate"],
    "advanced": ["advanced", "expert", "hard", "intense"],
}

DURATION_PATTERN = re.compile(r"(\d+)\s*(minutes?|mins?|hours?|hrs?)\b")


def _contains_phrase(text: str, phrase: str) -> bool:
    return re.search(rf"(?<![\w']){re.escape(phrase)}(?![\w'])", text) is not None


def _starts_with_word(text: str, phrase: str) -> bool:
    return re.match(rf"{re.escape(phrase)}(?![\w'])", text) is not None


def _first_group(text: str, groups: dict[str, list[str]]) -> str | None:
    for group, terms in groups.items():
        if any(_contains_phrase(text, term) for term in terms):
            return group
    return None


def extract_duration_minutes(text: str) -> int | None:
    """Extract a duration in minutes ("45 min" -> 45, "1 hr" -> 60)."""
    match = DURATION_PATTERN.search(text)
    if match is None:
        return None
    value = int(match.group(1))
    if match.group(2).startswith("h"):
        value *= 60
    return value


def extract_workout_slots(text: str) -> dict[str, Any]:
    slots: dict[str, Any] = {}
    muscle_group = _first_group(text, MUSCLE_GROUPS)
    if muscle_group:
        slots["muscle_group"] = muscle_group
    duration = extract_duration_minutes(text)
    if duration is not None:
        slots["duration"] = duration
    experience_level = _first_group(text, EXPERIENCE_LEVELS)
    if experience_level:
        slots["experience_level"] = experience_level
    return slots


class IntentClassifier:
    """Maps one user utterance to an Intent, recording it in working memory."""

    def detect_intent(self, user_input: str, memory: MemoryStore) -> Intent:
        text = user_input.lower().strip()
        intent = self._classify(text, user_input, memory)

        memory.update_working_memory(user_intent=intent)
        logger.debug(
            "Detected intent",
            session_id=memory.session_id,
            intent=intent.name,
            confidence=intent.confidence,
            slots=intent.slots,
        )
        return intent

    def _classify(self, text: str, user_input: str, memory: MemoryStore) -> Intent:
        if text == DOUBLE_IT_PHRASE:
            if memory.current_workout is not None:
                return Intent(name=IntentName.DOUBLE_WORKOUT, confidence=1.0)
            return Intent(name=IntentName.CANNOT_DOUBLE_NO_WORKOUT, confidence=1.0)

        if any(_starts_with_word(text, keyword) for keyword in GREETING_KEYWORDS):
            return Intent(name=IntentName.GREETING, confidence=0.9)

        if any(_contains_phrase(text, keyword) for keyword in FAREWELL_KEYWORDS):
            return Intent(name=IntentName.FAREWELL, confidence=0.9)

        if any(_contains_phrase(text, keyword) for keyword in THANKS_KEYWORDS):
            return Intent(name=IntentName.THANKS, confidence=0.9)

        if any(_contains_phrase(text, keyword) for keyword in HELP_KEYWORDS):
            return Intent(name=IntentName.HELP, confidence=0.9)

        navigation = self._match_navigation(text)
        if navigation is not None:
            return navigation

        exercise_info = self._match_exercise_info(text)
        if exercise_info is not None:
            return exercise_info

        if any(_contains_phrase(text, keyword) for keyword in CREATE_WORKOUT_KEYWORDS):
            slots = extract_workout_slots(text)
            return Intent(
                name=IntentName.CREATE_WORKOUT,
                confidence=0.85 if slots else 0.8,
                slots=slots,
            )

        return Intent(
            name=IntentName.UNKNOWN_INTENT,
            confidence=UNKNOWN_INTENT_CONFIDENCE,
            slots={"original_input": user_input},
        )

    def _match_navigation(self, text: str) -> Intent | None:
        for pattern in NAVIGATION_PATTERNS:
            match = pattern.match(text.rstrip("?.!"))
            if match and resolve_page(match.group(1)) is not None:
                return Intent(
                    name=IntentName.NAVIGATE,
                    confidence=0.85,
                    slots={"page": match.group(1).strip()},
                )
        return None

    def _match_exercise_info(self, text: str) -> Intent | None:
        for pattern in EXERCISE_INFO_PATTERNS:
            match = pattern.search(text)
            if match and match.group(1).strip():
                exercise_name = match.group(1).strip().rstrip("?").strip()
                return Intent(
                    name=IntentName.GET_EXERCISE_INFO,
                    confidence=0.85,
                    slots={"exercise_name": exercise_name},
                )
        return None

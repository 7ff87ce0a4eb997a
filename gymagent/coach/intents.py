from enum import StrEnum


class IntentName(StrEnum):
    """Intent names produced by the rule-based classifier and the clarification manager."""

    DOUBLE_WORKOUT = "DOUBLE_WORKOUT"
    CANNOT_DOUBLE_NO_WORKOUT = "CANNOT_DOUBLE_NO_WORKOUT"
    USER_PROVIDED_CLARIFICATION = "USER_PROVIDED_CLARIFICATION"
    CLARIFICATION_MISMATCH = "CLARIFICATION_MISMATCH"
    UNKNOWN_INTENT = "UNKNOWN_INTENT"
    GREETING = "GREETING"
    FAREWELL = "FAREWELL"
    THANKS = "THANKS"
    HELP = "HELP"
    GET_EXERCISE_INFO = "GET_EXERCISE_INFO"
    CREATE_WORKOUT = "CREATE_WORKOUT"
    NAVIGATE = "NAVIGATE"


# Small-talk intents answered directly; they end any pending clarification
HIGH_PRIORITY_INTENTS: frozenset[IntentName] = frozenset({
    IntentName.GREETING,
    IntentName.FAREWELL,
    IntentName.THANKS,
    IntentName.HELP,
})

UNKNOWN_INTENT_CONFIDENCE = 0.5

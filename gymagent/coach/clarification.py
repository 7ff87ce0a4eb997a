"""Clarification state machine for ambiguous workout modifications.

States:
    NONE             no pending clarification
    AWAITING_ANSWER  a question was asked and its context is in working memory

Transitions:
    NONE -> AWAITING_ANSWER             ambiguous DOUBLE_WORKOUT with a current workout
    AWAITING_ANSWER -> NONE             answer matched an option (or topic changed)
    AWAITING_ANSWER -> AWAITING_ANSWER  mismatch: same question re-issued, context untouched
    AWAITING_ANSWER -> AWAITING_ANSWER  a new DOUBLE_WORKOUT replaces the context
    AWAITING_ANSWER -> NONE             too many mismatches: clarification abandoned
"""

import re
from enum import StrEnum

from loguru import logger

from gymagent.coach.intents import IntentName
from gymagent.coach.memory import MemoryStore
from gymagent.coach.schemas.memory import (
    ClarificationContext,
    ClarificationDetails,
    ClarificationOption,
    Intent,
    ModificationPlan,
    ModificationType,
)
from gymagent.core.settings import settings

DOUBLE_WORKOUT_QUESTION = "How would you like me to double your workout? You can:"

DOUBLE_WORKOUT_OPTIONS: list[ClarificationOption] = [
    ClarificationOption(
        text="Double the sets",
        value=ModificationType.DOUBLE_SETS,
        synonyms=["double sets", "sets", "set"],
    ),
    ClarificationOption(
        text="Double the reps",
        value=ModificationType.DOUBLE_REPS,
        synonyms=["double reps", "reps", "rep"],
    ),
    ClarificationOption(
        text="Double both sets and reps",
        value=ModificationType.DOUBLE_BOTH,
        synonyms=["double both", "both"],
    ),
]

EMPTY_WORKOUT_ERROR = "There's no current workout to double or it's empty."
LOST_CONTEXT_ERROR = "I seem to have lost the context for your clarification. Could you try again?"
ABANDONED_MESSAGE = "No problem, let's leave that for now. Just say \"double it\" again whenever you're ready."

_INDEX_ANSWER = re.compile(r"^(?:option\s*)?#?(\d+)$")


class ClarificationState(StrEnum):
    NONE = "NONE"
    AWAITING_ANSWER = "AWAITING_ANSWER"


def _match_terms(option: ClarificationOption) -> list[str]:
    return [term.lower() for term in (option.text, option.value, *option.synonyms) if term]


def _contains_term(text: str, term: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(term)}(?!\w)", text) is not None


def match_option(user_input: str, options: list[ClarificationOption]) -> ClarificationOption | None:
    """Match an answer against the offered options.

    Order: exact phrase, then substring phrase (longest matching term wins,
    so "double both sets and reps" is not read as "sets"), then a 1-based
    numeric index such as "2", "2." or "2)".
    """
    text = user_input.lower().strip()
    if not text:
        return None

    for option in options:
        if text in _match_terms(option):
            return option

    best: tuple[int, ClarificationOption] | None = None
    for option in options:
        for term in _match_terms(option):
            if _contains_term(text, term) and (best is None or len(term) > best[0]):
                best = (len(term), option)
    if best is not None:
        return best[1]

    index_match = _INDEX_ANSWER.match(text.rstrip("?.!)"))
    if index_match:
        index = int(index_match.group(1))
        if 1 <= index <= len(options):
            return options[index - 1]
    return None


def render_clarification(details: ClarificationDetails) -> str:
    """Question text followed by numbered options."""
    if not details.options:
        return details.question
    numbered = "\n".join(f"{idx}. {option.text}" for idx, option in enumerate(details.options, start=1))
    return f"{details.question}\n{numbered}"


class ClarificationManager:
    """Decides when to ask a follow-up question and how to read the answer."""

    def __init__(self, max_retries: int | None = None) -> None:
        self.max_retries = max_retries if max_retries is not None else settings.max_clarification_retries

    @staticmethod
    def state(memory: MemoryStore) -> ClarificationState:
        if memory.pending_clarification is None:
            return ClarificationState.NONE
        return ClarificationState.AWAITING_ANSWER

    def open_double_workout(self, memory: MemoryStore) -> tuple[ClarificationDetails | None, str | None]:
        """Ask how to double the current workout.

        Replaces any pending context (supersede). Returns (details, error);
        exactly one of them is set.
        """
        workout = memory.current_workout
        if workout is None or not workout.exercises:
            memory.clear_pending_clarification()
            return None, EMPTY_WORKOUT_ERROR

        options = [option.model_copy(deep=True) for option in DOUBLE_WORKOUT_OPTIONS]
        context = ClarificationContext(
            original_intent_name=IntentName.DOUBLE_WORKOUT,
            clarification_question_text=DOUBLE_WORKOUT_QUESTION,
            options=options,
            related_data={"workout_id": workout.id},
        )
        superseded = memory.pending_clarification is not None
        memory.update_working_memory(pending_clarification_context=context, clarification_retries=0)
        logger.info(
            "Clarification requested",
            session_id=memory.session_id,
            workout_id=workout.id,
            superseded=superseded,
        )
        return ClarificationDetails(question=context.clarification_question_text, options=context.options), None

    def resolve(self, user_input: str, memory: MemoryStore) -> Intent | None:
        """Interpret this turn as an answer to the pending question.

        Returns a USER_PROVIDED_CLARIFICATION intent on a match, otherwise None.
        Working memory is left untouched when nothing matches.
        """
        context = memory.pending_clarification
        if context is None:
            return None

        option = match_option(user_input, context.options)
        if option is None:
            return None

        intent = Intent(
            name=IntentName.USER_PROVIDED_CLARIFICATION,
            confidence=0.95,
            slots={
                "clarification_choice": option.value,
                "original_intent_name": context.original_intent_name,
                "related_data": dict(context.related_data),
            },
        )
        memory.update_working_memory(user_intent=intent)
        logger.info(
            "Clarification answered",
            session_id=memory.session_id,
            choice=option.value,
        )
        return intent

    def build_plan(self, intent: Intent, memory: MemoryStore) -> tuple[ModificationPlan | None, str | None]:
        """Turn a resolved answer into a modification plan and clear the context.

        Returns (plan, error); the context is cleared either way.
        """
        slots = intent.slots or {}
        choice = slots.get("clarification_choice")
        related = slots.get("related_data") or {}
        workout = memory.current_workout
        memory.clear_pending_clarification()

        if not choice:
            return None, "I couldn't understand your choice for the clarification. Please try again."

        if (
            slots.get("original_intent_name") != IntentName.DOUBLE_WORKOUT
            or workout is None
            or related.get("workout_id") != workout.id
        ):
            logger.warning(
                "Clarification context no longer matches current workout",
                session_id=memory.session_id,
                related_workout_id=related.get("workout_id"),
                current_workout_id=workout.id if workout else None,
            )
            return None, LOST_CONTEXT_ERROR

        return ModificationPlan(type=choice, target_workout_id=workout.id), None

    def mismatch(self, user_input: str, memory: MemoryStore) -> tuple[Intent, ClarificationDetails | None, str | None]:
        """Handle an answer that matched no option.

        Re-issues the original question verbatim and leaves the context as is.
        Once the retry bound is exceeded the clarification is abandoned and a
        closing message is returned instead (details None).
        """
        context = memory.pending_clarification
        if context is None:
            raise RuntimeError("mismatch() called without a pending clarification")

        intent = Intent(
            name=IntentName.CLARIFICATION_MISMATCH,
            confidence=0.7,
            slots={
                "original_input": user_input,
                "pending_question": context.clarification_question_text,
            },
        )
        retries = memory.working.clarification_retries + 1
        memory.update_working_memory(user_intent=intent, clarification_retries=retries)

        if retries > self.max_retries:
            logger.info(
                "Clarification abandoned after repeated mismatches",
                session_id=memory.session_id,
                retries=retries,
            )
            memory.clear_pending_clarification()
            return intent, None, ABANDONED_MESSAGE

        logger.debug("Clarification mismatch", session_id=memory.session_id, retries=retries)
        return intent, ClarificationDetails(question=context.clarification_question_text, options=context.options), None

"""Multi-step reasoning pipeline.

Runs a fixed, strictly sequential chain of stages for workout requests:

    intent analysis -> parameter extraction -> validation -> generation -> formatting

Each stage's output feeds the next. Each stage runs on its own tier and is
retried once on the other tier; a stage that fails on both ends the chain,
which then returns a graceful fallback message instead of raising.
"""

import json
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from gymagent.routing.complexity import ComplexityRouter
from gymagent.routing.errors import PipelineStageError
from gymagent.routing.types import BackendRequest, Tier

PIPELINE_FALLBACK_MESSAGE = (
    "I encountered an issue while processing your workout request. Let me try a simpler approach."
)

SUCCESS_CONFIDENCE = 0.8
FALLBACK_CONFIDENCE = 0.6
FAILURE_CONFIDENCE = 0.1
MAX_CHAIN_CONFIDENCE = 0.95


class ReasoningStep(BaseModel):
    id: str
    name: str
    input: str
    output: str | None = None
    tier_used: Tier | None = None
    fell_back: bool = False
    confidence: float = FAILURE_CONFIDENCE
    success: bool = False
    error: str | None = None
    execution_time_ms: float = 0.0


class ReasoningChain(BaseModel):
    id: str
    user_input: str
    steps: list[ReasoningStep] = Field(default_factory=list)
    final_output: str
    overall_confidence: float
    total_execution_time_ms: float
    success: bool
    reasoning: str

    def step_output(self, step_id: str) -> str | None:
        for step in self.steps:
            if step.id == step_id:
                return step.output
        return None


@dataclass
class StageContext:
    user_input: str
    history: str
    slots: dict[str, Any]
    previous_output: str


@dataclass(frozen=True)
class StageSpec:
    id: str
    name: str
    tier: Tier | None  # None: capable when available, else fast
    build_prompt: Callable[[StageContext], str]


def _intent_prompt(ctx: StageContext) -> str:
    return (
        "Analyze this fitness request and extract the user's intent.\n\n"
        f'User Request: "{ctx.user_input}"\n\n'
        f"Recent conversation context:\n{ctx.history or '(none)'}\n\n"
        "Respond with a JSON object containing:\n"
        '{"intent": "workout_creation|workout_modification|general_question|greeting", '
        '"target_muscles": ["muscle1"], "workout_type": "strength|cardio|flexibility|mixed", '
        '"confidence": 0.0}'
    )


def _parameter_prompt(ctx: StageContext) -> str:
    known = json.dumps(ctx.slots, sort_keys=True) if ctx.slots else "{}"
    return (
        "Based on the intent analysis, extract detailed workout parameters.\n\n"
        f'User Request: "{ctx.user_input}"\n'
        f"Intent Analysis: {ctx.previous_output}\n"
        f"Already extracted: {known}\n\n"
        "Respond with ONLY valid JSON:\n"
        '{"target_muscles": [], "exercise_count": 4, "difficulty": "intermediate", '
        '"equipment": [], "duration_minutes": 30, "workout_type": "strength"}'
    )


def _validation_prompt(ctx: StageContext) -> str:
    return (
        "Validate and correct these workout parameters.\n\n"
        f'Original Request: "{ctx.user_input}"\n'
        f"Extracted Parameters: {ctx.previous_output}\n\n"
        "Ensure muscle groups are specific, the exercise count is between 1 and 8, "
        "the equipment is realistic and the difficulty matches the user's level. "
        "Respond with the corrected JSON parameters."
    )


def _generation_prompt(ctx: StageContext) -> str:
    return (
        "Generate a complete workout from these validated parameters.\n\n"
        f"Parameters: {ctx.previous_output}\n"
        f'Original Request: "{ctx.user_input}"\n\n'
        "Respond with ONLY valid JSON:\n"
        '{"workout_name": "...", "exercises": [{"name": "...", "sets": 3, "reps": 10, '
        '"rest_seconds": 60}], "target_muscles": [], "difficulty": "intermediate"}\n'
        "Include 3-5 exercises with specific names."
    )


def _formatting_prompt(ctx: StageContext) -> str:
    return (
        "Format this workout into a friendly, concise, encouraging reply from a fitness coach.\n\n"
        f"Workout Data: {ctx.previous_output}\n"
        f'Original Request: "{ctx.user_input}"\n\n'
        "Acknowledge the request, list the exercises with sets and reps, "
        "and briefly explain why they were chosen."
    )


INTENT_ANALYSIS = "intent_analysis"
PARAMETER_EXTRACTION = "parameter_extraction"
VALIDATION = "validation"
WORKOUT_GENERATION = "workout_generation"
RESPONSE_FORMATTING = "response_formatting"

PIPELINE_STAGES: tuple[StageSpec, ...] = (
    StageSpec(INTENT_ANALYSIS, "Intent Analysis", Tier.FAST, _intent_prompt),
    StageSpec(PARAMETER_EXTRACTION, "Parameter Extraction", Tier.CAPABLE, _parameter_prompt),
    StageSpec(VALIDATION, "Validation & Correction", None, _validation_prompt),
    StageSpec(WORKOUT_GENERATION, "Workout Generation", Tier.CAPABLE, _generation_prompt),
    StageSpec(RESPONSE_FORMATTING, "Response Formatting", Tier.FAST, _formatting_prompt),
)


def _format_history(history: list[dict[str, str]] | None, limit: int = 4) -> str:
    if not history:
        return ""
    return "\n".join(f"{msg.get('role', 'user')}: {msg.get('content', '')}" for msg in history[-limit:])


class ReasoningPipeline:
    """Sequences the reasoning stages across the two backend tiers."""

    def __init__(self, router: ComplexityRouter, stages: tuple[StageSpec, ...] = PIPELINE_STAGES) -> None:
        self.router = router
        self.stages = stages

    def _stage_tier(self, stage: StageSpec, prompt: str) -> Tier:
        if stage.tier is None:
            preferred = Tier.CAPABLE if self.router.is_available(Tier.CAPABLE) else Tier.FAST
            return self.router.select_tier(prompt, preferred=preferred)
        return self.router.select_tier(prompt, preferred=stage.tier)

    async def _run_stage(self, stage: StageSpec, ctx: StageContext) -> ReasoningStep:
        prompt = stage.build_prompt(ctx)
        tier = self._stage_tier(stage, prompt)
        started = time.perf_counter()

        response = await self.router.generate_with_fallback(BackendRequest(prompt=prompt), tier)
        elapsed_ms = (time.perf_counter() - started) * 1000

        step = ReasoningStep(
            id=stage.id,
            name=stage.name,
            input=ctx.previous_output or ctx.user_input,
            execution_time_ms=elapsed_ms,
        )
        if not response.success:
            step.error = response.error
            logger.warning("Reasoning stage failed on both tiers", stage=stage.id, error=response.error)
            return step

        step.output = response.content
        step.tier_used = response.tier_used
        step.fell_back = response.fell_back
        step.success = True
        step.confidence = FALLBACK_CONFIDENCE if response.fell_back else SUCCESS_CONFIDENCE
        logger.debug(
            "Reasoning stage completed",
            stage=stage.id,
            tier=response.tier_used.value if response.tier_used else None,
            fell_back=response.fell_back,
        )
        return step

    async def run(
        self,
        user_input: str,
        conversation_history: list[dict[str, str]] | None = None,
        slots: dict[str, Any] | None = None,
    ) -> ReasoningChain:
        """Execute every stage in order. Never raises."""
        chain_id = f"reasoning_{uuid.uuid4().hex[:12]}"
        started = time.perf_counter()
        steps: list[ReasoningStep] = []
        ctx = StageContext(
            user_input=user_input,
            history=_format_history(conversation_history),
            slots=slots or {},
            previous_output="",
        )

        logger.info("Starting reasoning chain", chain_id=chain_id)
        try:
            for stage in self.stages:
                step = await self._run_stage(stage, ctx)
                steps.append(step)
                if not step.success:
                    raise PipelineStageError(stage.id, step.error)
                ctx.previous_output = step.output or ""
        except PipelineStageError as e:
            logger.error("Reasoning chain failed", chain_id=chain_id, stage=e.stage)
            return ReasoningChain(
                id=chain_id,
                user_input=user_input,
                steps=steps,
                final_output=PIPELINE_FALLBACK_MESSAGE,
                overall_confidence=0.2,
                total_execution_time_ms=(time.perf_counter() - started) * 1000,
                success=False,
                reasoning=f"Reasoning chain failed at {e.stage}: {e.message}",
            )

        return ReasoningChain(
            id=chain_id,
            user_input=user_input,
            steps=steps,
            final_output=ctx.previous_output,
            overall_confidence=calculate_overall_confidence(steps),
            total_execution_time_ms=(time.perf_counter() - started) * 1000,
            success=True,
            reasoning=explain_steps(steps),
        )


def calculate_overall_confidence(steps: list[ReasoningStep]) -> float:
    successful = [step for step in steps if step.success]
    if not successful:
        return FAILURE_CONFIDENCE
    average = sum(step.confidence for step in successful) / len(successful)
    success_rate = len(successful) / len(steps)
    return min(MAX_CHAIN_CONFIDENCE, average * success_rate)


def explain_steps(steps: list[ReasoningStep]) -> str:
    completed = [step.name for step in steps if step.success]
    return f"Completed {len(completed)}/{len(steps)} reasoning steps: {' -> '.join(completed)}"

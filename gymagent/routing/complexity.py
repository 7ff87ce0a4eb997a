"""Complexity router.

Chooses between the fast/cheap and the slow/capable backend tier with a
keyword-presence heuristic, and calls the chosen tier with a single fallback
to the other one. A wrong tier choice costs quality or latency, never
correctness.
"""

import re

from loguru import logger

from gymagent.routing.backends import LLMBackend
from gymagent.routing.errors import BackendCallError, BackendUnavailableError
from gymagent.routing.types import BackendRequest, RoutedResponse, RoutingDecision, Tier

CREATION_TERMS = ["create", "generate", "build", "make", "design", "plan", "program", "routine", "workout", "exercise"]
MUSCLE_GROUPS = [
    "chest",
    "back",
    "legs",
    "shoulders",
    "arms",
    "biceps",
    "triceps",
    "glutes",
    "hamstrings",
    "quads",
    "calves",
    "core",
    "abs",
    "full body",
    "upper body",
    "lower body",
]
MODIFICATION_VERBS = ["double", "increase", "decrease", "modify", "change", "adjust", "swap", "replace", "add", "remove"]
ANALYTICAL_VERBS = ["calculate", "analyze", "analyse", "compare", "evaluate", "explain why", "optimize"]

COMPLEXITY_KEYWORDS: list[str] = CREATION_TERMS + MUSCLE_GROUPS + MODIFICATION_VERBS + ANALYTICAL_VERBS

DEGRADED_RESPONSE = "I'm having trouble processing your request right now. Please try again."

_KEYWORD_PATTERNS = {keyword: re.compile(rf"\b{re.escape(keyword)}(?:s|es|d|ed|ing)?\b") for keyword in COMPLEXITY_KEYWORDS}


class ComplexityRouter:
    """Selects a backend tier per request and calls it with fallback."""

    def __init__(self, backends: dict[Tier, LLMBackend]) -> None:
        self.backends = backends

    def classify(self, request_text: str) -> RoutingDecision:
        text = request_text.lower()
        matched = [keyword for keyword, pattern in _KEYWORD_PATTERNS.items() if pattern.search(text)]
        tier = Tier.CAPABLE if matched else Tier.FAST
        return RoutingDecision(tier=tier, matched_keywords=matched)

    def select_tier(
        self,
        request_text: str,
        *,
        requires_reasoning: bool = False,
        preferred: Tier | None = None,
    ) -> Tier:
        """Pick the tier for one call.

        A preferred (pinned) tier wins, then an explicit reasoning requirement,
        then the keyword heuristic.
        """
        if preferred is not None:
            return preferred
        if requires_reasoning:
            return Tier.CAPABLE
        return self.classify(request_text).tier

    def is_available(self, tier: Tier) -> bool:
        backend = self.backends.get(tier)
        return backend is not None and backend.available

    async def _call(self, tier: Tier, request: BackendRequest) -> str:
        backend = self.backends.get(tier)
        if backend is None or not backend.available:
            raise BackendUnavailableError(tier.value)
        response = await backend.generate(request)
        if not response.success:
            raise BackendCallError(tier.value, response.error or "Backend returned no content")
        return response.content

    async def generate_with_fallback(self, request: BackendRequest, tier: Tier) -> RoutedResponse:
        """Call `tier`, retrying once against the other tier on any failure.

        Never raises; a failure on both tiers yields an unsuccessful response
        carrying the last error.
        """
        errors: list[str] = []
        for attempt, candidate in enumerate((tier, tier.other)):
            try:
                content = await self._call(candidate, request)
            except (BackendUnavailableError, BackendCallError) as e:
                failure = e
            except Exception as e:
                logger.exception("Backend raised an unexpected error", tier=candidate.value)
                failure = BackendCallError(candidate.value, f"{type(e).__name__}: {e}")
            else:
                return RoutedResponse(success=True, content=content, tier_used=candidate, fell_back=attempt > 0)

            errors.append(failure.message)
            logger.warning(
                "Backend tier failed",
                tier=candidate.value,
                attempt=attempt + 1,
                error=failure.message,
            )

        return RoutedResponse(success=False, content="", error="; ".join(errors))

    async def route_request(self, request: BackendRequest, *, requires_reasoning: bool = False) -> RoutedResponse:
        """Route a single-shot request; degrade gracefully if no tier answers."""
        tier = self.select_tier(request.prompt, requires_reasoning=requires_reasoning)
        logger.info("Routing request", tier=tier.value, requires_reasoning=requires_reasoning)

        response = await self.generate_with_fallback(request, tier)
        if not response.success:
            logger.error("All backend tiers failed", error=response.error)
            return response.model_copy(update={"content": DEGRADED_RESPONSE})
        return response

"""Root conftest for all tests.

Shared fixtures: a scripted fake backend, a router over two fake tiers, the
reference workout `w1` and a ready-to-use agent.
"""

import asyncio

import pytest
from loguru import logger

from gymagent.coach.orchestrator import WorkoutAgent
from gymagent.coach.schemas.memory import Workout, WorkoutExercise
from gymagent.routing.complexity import ComplexityRouter
from gymagent.routing.errors import BackendCallError
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.routing.types import BackendRequest, BackendResponse, StreamResult, Tier
from gymagent.tools.catalog import build_tool_registry


class FakeBackend:
    """Scripted backend: pops replies in order, or fails every call.

    `error` fails the way a real backend reports errors; `exception` is raised
    as is, like an unexpected client failure.
    """

    def __init__(
        self,
        tier: Tier,
        replies: list[str] | None = None,
        available: bool = True,
        error: str | None = None,
        chunks: list[str] | None = None,
        exception: Exception | None = None,
    ) -> None:
        self.tier = tier
        self.replies = list(replies or [])
        self._available = available
        self.error = error
        self.chunks = list(chunks or [])
        self.exception = exception
        self.requests: list[BackendRequest] = []

    @property
    def available(self) -> bool:
        return self._available

    async def generate(self, request: BackendRequest) -> BackendResponse:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        if self.error:
            raise BackendCallError(self.tier.value, self.error)
        content = self.replies.pop(0) if self.replies else f"{self.tier.value} reply"
        return BackendResponse(success=bool(content), content=content)

    async def stream(self, request, on_chunk, cancel_event: asyncio.Event | None = None) -> StreamResult:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        parts: list[str] = []
        for chunk in self.chunks:
            if cancel_event is not None and cancel_event.is_set():
                return StreamResult(content="".join(parts), cancelled=True)
            parts.append(chunk)
            on_chunk(chunk)
        if self.error:
            raise BackendCallError(self.tier.value, self.error)
        return StreamResult(content="".join(parts))


@pytest.fixture(autouse=True)
def quiet_logs():
    """Keep loguru output out of the test report."""
    logger.disable("gymagent")
    yield
    logger.enable("gymagent")


@pytest.fixture
def make_backend():
    return FakeBackend


@pytest.fixture
def fast_backend():
    return FakeBackend(Tier.FAST)


@pytest.fixture
def capable_backend():
    return FakeBackend(Tier.CAPABLE)


@pytest.fixture
def router(fast_backend, capable_backend):
    return ComplexityRouter({Tier.FAST: fast_backend, Tier.CAPABLE: capable_backend})


@pytest.fixture
def workout_w1():
    return Workout(id="w1", exercises=[WorkoutExercise(exercise_id="e1", sets=3, reps=10)])


@pytest.fixture
def agent(router):
    return WorkoutAgent("session-1", tools=build_tool_registry(ReasoningPipeline(router)))

from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from gymagent.api.agent import router as agent_router
from gymagent.coach.conversation_store import InMemoryChatHistoryStore
from gymagent.coach.quick_action import QuickActionService
from gymagent.coach.sessions import SessionRegistry
from gymagent.core.logger import setup_logger
from gymagent.core.settings import settings
from gymagent.routing.backends import build_default_backends
from gymagent.routing.complexity import ComplexityRouter
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.routing.streaming import StreamingChatService
from gymagent.tools.catalog import build_tool_registry


@asynccontextmanager
async def lifespan(_app: FastAPI):
    setup_logger(level=settings.log_level, log_file=settings.log_file, json_logs=settings.log_json)
    if not settings.openai_api_key:
        logger.warning("OPENAI_API_KEY is not set. Workout generation will return fallback replies.")
    yield
    logger.info("Shutting down workout coach agent")


def create_app(
    session_registry: SessionRegistry | None = None,
    quick_action_service: QuickActionService | None = None,
    streaming_chat_service: StreamingChatService | None = None,
) -> FastAPI:
    app = FastAPI(title="Workout Coach Agent", lifespan=lifespan)

    if session_registry is None or quick_action_service is None or streaming_chat_service is None:
        router = ComplexityRouter(build_default_backends())
        if session_registry is None:
            session_registry = SessionRegistry(store=InMemoryChatHistoryStore(), router=router)
        if quick_action_service is None:
            quick_action_service = QuickActionService(build_tool_registry(ReasoningPipeline(router)))
        if streaming_chat_service is None:
            if session_registry.store is None:
                raise ValueError("Streaming chat needs a session registry with a chat history store")
            streaming_chat_service = StreamingChatService(router, session_registry.store)

    app.state.session_registry = session_registry
    app.state.quick_action_service = quick_action_service
    app.state.streaming_chat_service = streaming_chat_service
    app.include_router(agent_router)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    return app


app = create_app()

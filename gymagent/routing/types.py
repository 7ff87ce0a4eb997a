"""Routing types: tiers, backend request/response, routing decisions."""

from enum import StrEnum

from pydantic import BaseModel, Field


class Tier(StrEnum):
    FAST = "fast"
    CAPABLE = "capable"

    @property
    def other(self) -> "Tier":
        return Tier.CAPABLE if self is Tier.FAST else Tier.FAST


class BackendRequest(BaseModel):
    prompt: str
    max_output_tokens: int | None = None
    temperature: float | None = None
    system: str | None = None


class BackendResponse(BaseModel):
    success: bool
    content: str = ""
    error: str | None = None


class StreamResult(BaseModel):
    content: str
    cancelled: bool = False


class RoutingDecision(BaseModel):
    tier: Tier
    matched_keywords: list[str] = Field(default_factory=list)


class RoutedResponse(BaseModel):
    """Outcome of a single routed request (after any fallback)."""

    success: bool
    content: str
    tier_used: Tier | None = None
    fell_back: bool = False
    error: str | None = None

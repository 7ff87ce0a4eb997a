"""Error types for the routing layer.

These never escape the routing layer: the router and the reasoning pipeline
convert them into degraded responses at their boundary.
"""


class BackendUnavailableError(Exception):
    """Raised when a backend tier cannot be called at all (e.g. no API key)."""

    def __init__(self, tier: str, message: str | None = None):
        self.tier = tier
        self.message = message or f"Backend tier '{tier}' is unavailable"
        super().__init__(self.message)


class BackendCallError(Exception):
    """Raised when a backend call fails, times out, or reports no success."""

    def __init__(self, tier: str, message: str | None = None):
        self.tier = tier
        self.message = message or f"Backend call failed on tier '{tier}'"
        super().__init__(self.message)


class PipelineStageError(Exception):
    """Raised when a pipeline stage failed on both tiers."""

    def __init__(self, stage: str, message: str | None = None):
        self.stage = stage
        self.message = message or f"Pipeline stage '{stage}' failed on every tier"
        super().__init__(self.message)

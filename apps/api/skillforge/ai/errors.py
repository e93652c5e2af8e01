from __future__ import annotations


class FlowError(Exception):
    """Base class for errors surfaced by AI flows."""


class ModelInvocationError(FlowError):
    """The call to the hosted model failed (network, API or auth error)."""


class ModelUnavailableError(ModelInvocationError):
    """No model client is configured for this process."""


class EmptyModelOutputError(FlowError):
    """The model answered, but nothing in the answer satisfied the output schema."""

    def __init__(self, flow_name: str, message: str | None = None) -> None:
        self.flow_name = flow_name
        super().__init__(message or f"AI flow '{flow_name}' returned no usable output.")


class PlanGenerationError(FlowError):
    pass


class ContentReviewError(FlowError):
    pass

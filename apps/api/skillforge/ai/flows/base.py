from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from skillforge.ai.client import ModelClient
from skillforge.ai.errors import EmptyModelOutputError, ModelInvocationError
from skillforge.ai.prompts import SYSTEM_PROMPT, PromptRenderer

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT", bound=BaseModel)


class FailureMode(str, Enum):
    FALLBACK = "fallback"
    RAISE = "raise"


@dataclass(frozen=True)
class FlowPolicy:
    """What a flow does when the model returns nothing usable, and when the call itself fails."""

    on_empty: FailureMode
    on_error: FailureMode

    def with_overrides(self, overrides: dict[str, str] | None) -> FlowPolicy:
        if not overrides:
            return self
        unknown = set(overrides) - {"on_empty", "on_error"}
        if unknown:
            raise ValueError(f"Unknown flow policy keys: {sorted(unknown)}")
        return replace(self, **{key: FailureMode(value) for key, value in overrides.items()})


class Flow(Generic[InputT, OutputT]):
    """A named prompt bound to an input schema, an output schema and a failure policy.

    Subclasses set the class attributes and override the hooks they need:
    ``prompt_context`` builds the template variables, ``parse`` validates the raw
    reply, ``is_empty`` decides whether a valid reply is still unusable,
    ``finalize`` post-processes a usable reply and ``fallback`` produces the
    soft-failure value.
    """

    name: ClassVar[str]
    template: ClassVar[str]
    input_model: ClassVar[type[BaseModel]]
    output_model: ClassVar[type[BaseModel]]
    default_policy: ClassVar[FlowPolicy]
    supports_fallback: ClassVar[bool] = True

    def __init__(
        self,
        client: ModelClient,
        renderer: PromptRenderer | None = None,
        policy: FlowPolicy | None = None,
    ) -> None:
        self.client = client
        self.renderer = renderer or PromptRenderer()
        self.policy = policy or self.default_policy
        if not self.supports_fallback and FailureMode.FALLBACK in (self.policy.on_empty, self.policy.on_error):
            raise ValueError(f"Flow '{self.name}' has no fallback value; its policy must raise")

    async def __call__(self, payload: InputT | dict[str, Any]) -> OutputT:
        data = payload if isinstance(payload, self.input_model) else self.input_model.model_validate(payload)
        self.log_request(data)
        prompt = self.renderer.render(self.template, **self.prompt_context(data))

        try:
            raw = await self.client.complete_json(prompt, system=SYSTEM_PROMPT, media=self.media(data))
        except ModelInvocationError as exc:
            logger.error("Flow %s: model invocation failed", self.name, exc_info=True)
            if self.policy.on_error is FailureMode.RAISE:
                error = self.invocation_error(exc)
                if error is exc:
                    raise
                raise error from exc
            return self.fallback(data)

        output = self.parse(raw)
        if output is None or self.is_empty(output):
            logger.warning("Flow %s: model returned no usable output", self.name)
            if self.policy.on_empty is FailureMode.RAISE:
                raise self.empty_error(data)
            return self.fallback(data)

        return self.finalize(output, data)

    def log_request(self, data: InputT) -> None:
        logger.info("Flow %s called", self.name)

    def prompt_context(self, data: InputT) -> dict[str, Any]:
        return data.model_dump()

    def media(self, data: InputT) -> list[str] | None:
        return None

    def parse(self, raw: dict | None) -> BaseModel | None:
        if raw is None:
            return None
        try:
            return self.output_model.model_validate(raw)
        except ValidationError as exc:
            logger.warning("Flow %s: reply failed schema validation with %d error(s)", self.name, exc.error_count())
            return None

    def is_empty(self, output: BaseModel) -> bool:
        return False

    def finalize(self, output: BaseModel, data: InputT) -> OutputT:
        return output  # type: ignore[return-value]

    def fallback(self, data: InputT) -> OutputT:
        raise NotImplementedError

    def invocation_error(self, exc: ModelInvocationError) -> Exception:
        return exc

    def empty_error(self, data: InputT) -> Exception:
        return EmptyModelOutputError(self.name)

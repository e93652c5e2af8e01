from __future__ import annotations

from skillforge.ai.client import ModelClient
from skillforge.ai.flows import (
    ContentTutorFlow,
    Flow,
    GenerateLearningPlanFlow,
    GenerateQuizFlow,
    GlobalChatbotFlow,
    SuggestQuizFeedbackFlow,
    ValidateAndDescribeContentFlow,
)
from skillforge.ai.prompts import PromptRenderer
from skillforge.ai.schemas import (
    ChatbotInput,
    ChatbotOutput,
    GenerateLearningPlanInput,
    GenerateLearningPlanOutput,
    GenerateQuizInput,
    GenerateQuizOutput,
    GlobalChatbotInput,
    GlobalChatbotOutput,
    SuggestQuizFeedbackInput,
    SuggestQuizFeedbackOutput,
    ValidateAndDescribeContentInput,
    ValidateAndDescribeContentOutput,
)

FLOW_TYPES: tuple[type[Flow], ...] = (
    GenerateQuizFlow,
    SuggestQuizFeedbackFlow,
    ContentTutorFlow,
    GlobalChatbotFlow,
    GenerateLearningPlanFlow,
    ValidateAndDescribeContentFlow,
)


class AIService:
    """Entry point to every AI flow, each built with its configured failure policy."""

    def __init__(self, client: ModelClient, policy_overrides: dict[str, dict[str, str]] | None = None) -> None:
        overrides = policy_overrides or {}
        unknown = set(overrides) - {flow_type.name for flow_type in FLOW_TYPES}
        if unknown:
            raise ValueError(f"Policy overrides name unknown flows: {sorted(unknown)}")

        renderer = PromptRenderer()
        self.flows: dict[str, Flow] = {
            flow_type.name: flow_type(
                client,
                renderer,
                flow_type.default_policy.with_overrides(overrides.get(flow_type.name)),
            )
            for flow_type in FLOW_TYPES
        }

    async def generate_quiz(self, payload: GenerateQuizInput | dict) -> GenerateQuizOutput:
        return await self.flows[GenerateQuizFlow.name](payload)

    async def suggest_quiz_feedback(self, payload: SuggestQuizFeedbackInput | dict) -> SuggestQuizFeedbackOutput:
        return await self.flows[SuggestQuizFeedbackFlow.name](payload)

    async def ask_content_tutor(self, payload: ChatbotInput | dict) -> ChatbotOutput:
        return await self.flows[ContentTutorFlow.name](payload)

    async def ask_global_chatbot(self, payload: GlobalChatbotInput | dict) -> GlobalChatbotOutput:
        return await self.flows[GlobalChatbotFlow.name](payload)

    async def generate_learning_plan(self, payload: GenerateLearningPlanInput | dict) -> GenerateLearningPlanOutput:
        return await self.flows[GenerateLearningPlanFlow.name](payload)

    async def validate_and_describe_content(
        self, payload: ValidateAndDescribeContentInput | dict
    ) -> ValidateAndDescribeContentOutput:
        return await self.flows[ValidateAndDescribeContentFlow.name](payload)

from __future__ import annotations

from skillforge.ai.flows.base import FailureMode, Flow, FlowPolicy
from skillforge.ai.flows.chatbot import ContentTutorFlow, GlobalChatbotFlow
from skillforge.ai.flows.content_review import ValidateAndDescribeContentFlow
from skillforge.ai.flows.learning_plan import GenerateLearningPlanFlow
from skillforge.ai.flows.quiz import GenerateQuizFlow, SuggestQuizFeedbackFlow, format_quiz_results

__all__ = [
    "ContentTutorFlow",
    "FailureMode",
    "Flow",
    "FlowPolicy",
    "GenerateLearningPlanFlow",
    "GenerateQuizFlow",
    "GlobalChatbotFlow",
    "SuggestQuizFeedbackFlow",
    "ValidateAndDescribeContentFlow",
    "format_quiz_results",
]

from __future__ import annotations

import logging

from skillforge.ai.flows.base import FailureMode, Flow, FlowPolicy
from skillforge.ai.schemas import ChatbotInput, ChatbotOutput, GlobalChatbotInput, GlobalChatbotOutput
from skillforge.utils.messages import CHATBOT_FALLBACK

logger = logging.getLogger(__name__)


class ContentTutorFlow(Flow[ChatbotInput, ChatbotOutput]):
    """Answers a question using only the text of one piece of content."""

    name = "content_tutor"
    template = "content_tutor"
    input_model = ChatbotInput
    output_model = ChatbotOutput
    default_policy = FlowPolicy(on_empty=FailureMode.FALLBACK, on_error=FailureMode.FALLBACK)

    def log_request(self, data: ChatbotInput) -> None:
        logger.info("Tutor question (%d chars) over content of length %d", len(data.question), len(data.file_content))

    def is_empty(self, output: ChatbotOutput) -> bool:
        return not output.answer.strip()

    def fallback(self, data: ChatbotInput) -> ChatbotOutput:
        return ChatbotOutput(answer=CHATBOT_FALLBACK)


class GlobalChatbotFlow(Flow[GlobalChatbotInput, GlobalChatbotOutput]):
    name = "global_chatbot"
    template = "global_chatbot"
    input_model = GlobalChatbotInput
    output_model = GlobalChatbotOutput
    default_policy = FlowPolicy(on_empty=FailureMode.FALLBACK, on_error=FailureMode.FALLBACK)

    def is_empty(self, output: GlobalChatbotOutput) -> bool:
        return not output.answer.strip()

    def fallback(self, data: GlobalChatbotInput) -> GlobalChatbotOutput:
        return GlobalChatbotOutput(answer=CHATBOT_FALLBACK)

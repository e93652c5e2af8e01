from __future__ import annotations

import logging

from skillforge.ai.errors import ContentReviewError, ModelInvocationError
from skillforge.ai.flows.base import FailureMode, Flow, FlowPolicy
from skillforge.ai.media import decoded_text, parse_data_uri
from skillforge.ai.schemas import ValidateAndDescribeContentInput, ValidateAndDescribeContentOutput
from skillforge.utils.messages import REVIEW_SKIPPED_DESCRIPTIONS

logger = logging.getLogger(__name__)


class ValidateAndDescribeContentFlow(Flow[ValidateAndDescribeContentInput, ValidateAndDescribeContentOutput]):
    """Decides whether an upload is educational and writes its long-form description.

    Text uploads are inlined into the prompt; audio and video travel as an
    attached data URI.
    """

    name = "validate_and_describe_content"
    template = "validate_and_describe_content"
    input_model = ValidateAndDescribeContentInput
    output_model = ValidateAndDescribeContentOutput
    default_policy = FlowPolicy(on_empty=FailureMode.RAISE, on_error=FailureMode.RAISE)

    def log_request(self, data: ValidateAndDescribeContentInput) -> None:
        logger.info("Reviewing %s upload (%d data URI chars)", data.content_type, len(data.content_data_uri))

    def prompt_context(self, data: ValidateAndDescribeContentInput) -> dict:
        mime_type, _ = parse_data_uri(data.content_data_uri)
        return {
            "content_type": data.content_type,
            "mime_type": mime_type,
            "inline_text": decoded_text(data.content_data_uri),
        }

    def media(self, data: ValidateAndDescribeContentInput) -> list[str] | None:
        if decoded_text(data.content_data_uri) is not None:
            return None
        return [data.content_data_uri]

    def is_empty(self, output: ValidateAndDescribeContentOutput) -> bool:
        return not output.description.strip()

    def empty_error(self, data: ValidateAndDescribeContentInput) -> Exception:
        return ContentReviewError("AI returned no description for the content.")

    def invocation_error(self, exc: ModelInvocationError) -> Exception:
        return ContentReviewError(f"Could not process content with AI: {exc}")

    def fallback(self, data: ValidateAndDescribeContentInput) -> ValidateAndDescribeContentOutput:
        return ValidateAndDescribeContentOutput(is_valid=True, description=REVIEW_SKIPPED_DESCRIPTIONS["failed"])

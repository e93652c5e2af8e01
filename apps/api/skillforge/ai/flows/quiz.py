from __future__ import annotations

import logging

from skillforge.ai.flows.base import FailureMode, Flow, FlowPolicy
from skillforge.ai.schemas import (
    GenerateQuizInput,
    GenerateQuizOutput,
    QuizQuestionWithResult,
    SuggestQuizFeedbackInput,
    SuggestQuizFeedbackOutput,
)
from skillforge.utils.messages import FEEDBACK_FALLBACK

logger = logging.getLogger(__name__)


class GenerateQuizFlow(Flow[GenerateQuizInput, GenerateQuizOutput]):
    name = "generate_quiz"
    template = "generate_quiz"
    input_model = GenerateQuizInput
    output_model = GenerateQuizOutput
    default_policy = FlowPolicy(on_empty=FailureMode.FALLBACK, on_error=FailureMode.RAISE)

    def log_request(self, data: GenerateQuizInput) -> None:
        logger.info(
            "Generating quiz with %d questions from content of length %d",
            data.num_questions,
            len(data.content_text),
        )

    def is_empty(self, output: GenerateQuizOutput) -> bool:
        return not output.questions

    def finalize(self, output: GenerateQuizOutput, data: GenerateQuizInput) -> GenerateQuizOutput:
        if len(output.questions) > data.num_questions:
            logger.info("Model returned %d questions, keeping %d", len(output.questions), data.num_questions)
            output = GenerateQuizOutput(questions=output.questions[: data.num_questions])
        logger.info("Generated %d quiz questions", len(output.questions))
        return output

    def fallback(self, data: GenerateQuizInput) -> GenerateQuizOutput:
        return GenerateQuizOutput(questions=[])


def _option_label(index: int) -> str:
    return f"Option {index + 1} (index {index})"


def format_quiz_results(results: list[QuizQuestionWithResult]) -> str:
    """Flatten graded questions into one text block, one entry per result in input order."""
    entries = []
    for number, result in enumerate(results, start=1):
        lines = [f"Question {number}: {result.question_text}", "Options:"]
        lines.extend(f"  {position}. {option}" for position, option in enumerate(result.options, start=1))
        lines.append(f"Correct Answer: {_option_label(result.correct_answer_index)}")
        if result.user_answer_index is None:
            lines.append("User's Answer: Not Answered")
        else:
            lines.append(f"User's Answer: {_option_label(result.user_answer_index)}")
        lines.append(f"User was Correct: {'Yes' if result.is_correct else 'No'}")
        if not result.is_correct and result.explanation:
            lines.append(f"Explanation: {result.explanation}")
        entries.append("\n".join(lines))
    return "\n---\n".join(entries)


class SuggestQuizFeedbackFlow(Flow[SuggestQuizFeedbackInput, SuggestQuizFeedbackOutput]):
    name = "suggest_quiz_feedback"
    template = "suggest_quiz_feedback"
    input_model = SuggestQuizFeedbackInput
    output_model = SuggestQuizFeedbackOutput
    default_policy = FlowPolicy(on_empty=FailureMode.FALLBACK, on_error=FailureMode.FALLBACK)

    def log_request(self, data: SuggestQuizFeedbackInput) -> None:
        logger.info(
            "Generating feedback for content of length %d and %d quiz results",
            len(data.content_text),
            len(data.quiz_results),
        )

    def prompt_context(self, data: SuggestQuizFeedbackInput) -> dict:
        return {
            "content_text": data.content_text,
            "result_count": len(data.quiz_results),
            "quiz_results_text": format_quiz_results(data.quiz_results),
        }

    def is_empty(self, output: SuggestQuizFeedbackOutput) -> bool:
        return not output.feedback_text.strip()

    def fallback(self, data: SuggestQuizFeedbackInput) -> SuggestQuizFeedbackOutput:
        return SuggestQuizFeedbackOutput(feedback_text=FEEDBACK_FALLBACK)

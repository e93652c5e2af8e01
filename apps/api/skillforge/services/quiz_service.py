from __future__ import annotations

import logging
from dataclasses import dataclass

from skillforge.ai.schemas import QuizQuestion, QuizQuestionWithResult, SuggestQuizFeedbackInput
from skillforge.services.ai_service import AIService
from skillforge.utils.messages import PERFECT_SCORE_FEEDBACK

logger = logging.getLogger(__name__)


@dataclass
class GradedQuiz:
    results: list[QuizQuestionWithResult]
    score: int
    feedback_text: str

    @property
    def total_questions(self) -> int:
        return len(self.results)

    @property
    def perfect(self) -> bool:
        return self.score == self.total_questions


class QuizService:
    def grade(self, questions: list[QuizQuestion], answers: list[int | None]) -> list[QuizQuestionWithResult]:
        if len(questions) != len(answers):
            raise ValueError("answers must have one entry per question")
        return [
            QuizQuestionWithResult(
                **question.model_dump(),
                user_answer_index=answer,
                is_correct=answer is not None and answer == question.correct_answer_index,
            )
            for question, answer in zip(questions, answers)
        ]

    async def grade_with_feedback(
        self,
        ai: AIService,
        content_text: str,
        questions: list[QuizQuestion],
        answers: list[int | None],
    ) -> GradedQuiz:
        results = self.grade(questions, answers)
        score = sum(1 for result in results if result.is_correct)
        if score == len(results):
            return GradedQuiz(results=results, score=score, feedback_text=PERFECT_SCORE_FEEDBACK)

        logger.info("Quiz scored %d/%d, requesting feedback", score, len(results))
        feedback = await ai.suggest_quiz_feedback(
            SuggestQuizFeedbackInput(content_text=content_text, quiz_results=results)
        )
        return GradedQuiz(results=results, score=score, feedback_text=feedback.feedback_text)


quiz_service = QuizService()

from __future__ import annotations

FEEDBACK_FALLBACK = (
    "I'm sorry, I couldn't generate specific feedback for this attempt. "
    "Try reviewing the questions and content again."
)

CHATBOT_FALLBACK = "I'm sorry, I couldn't generate a response at this moment. Please try again."

PERFECT_SCORE_FEEDBACK = "Excellent! You got all questions correct. Keep up the great work!"

REVIEW_SKIPPED_DESCRIPTIONS = {
    "oversize": "AI description skipped due to large file size. Please add or edit manually.",
    "failed": "AI processing failed. Please add description manually.",
    "empty": "No content provided for AI analysis. Please add description manually.",
    "unsupported": "AI description is not available for this file type. Please add description manually.",
}

PLAN_NO_MILESTONES = "AI failed to generate a valid learning plan. The output was empty or had no milestones."

PLAN_INCOMPLETE = (
    "AI generated an incomplete plan. Some milestones are missing essential details "
    "(title, description, duration, or search keywords). Please try rephrasing your skill or try again."
)

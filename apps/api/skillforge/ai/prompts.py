from __future__ import annotations

from jinja2 import DictLoader, Environment, StrictUndefined

SYSTEM_PROMPT = (
    "You are the AI assistant of SkillForge, an online skill-sharing platform. "
    "Always reply with a single JSON object and nothing else."
)

QUESTION_SHAPE = (
    '{"question_text": string, "options": [string, string, string, string], '
    '"correct_answer_index": integer 0-3, "explanation": string (optional)}'
)

TEMPLATES: dict[str, str] = {
    "generate_quiz": """\
You are an AI tasked with creating a multiple-choice quiz based on the provided content.
The quiz should test understanding of the key concepts in the content.

Content Text:
{{ content_text }}

Please generate exactly {{ num_questions }} multiple-choice quiz questions.
Each question must have:
1. A clear question text ("question_text").
2. Exactly four distinct options ("options").
3. The 0-based index of the correct answer within the options array ("correct_answer_index").
4. An optional brief explanation for the correct answer or context for the question ("explanation").

Focus on questions that are relevant, clear, and have plausible distractors.
Ensure the options are distinct and the correct answer index is accurate.

Reply with JSON: {"questions": [{{ question_shape }}, ...]}
""",
    "suggest_quiz_feedback": """\
You are a helpful AI learning assistant.
The user has just completed a quiz based on the provided content text.
Analyze their incorrect answers and the original content to provide constructive feedback.
Identify 2-3 key topics or concepts from the content that the user seems to be weak on, based on their incorrect answers.
Provide specific, actionable advice or point to sections in the content they should review.
Keep the feedback concise, encouraging, and focused on improvement.

Original Content Text:
---
{{ content_text }}
---

User's Quiz Results ({{ result_count }} questions, their answer, and whether it was correct):
---
{{ quiz_results_text }}
---

Based on the incorrect answers, provide personalized feedback.
Reply with JSON: {"feedback_text": string}
""",
    "content_tutor": """\
You are a tutor bot whose purpose is to answer questions about the content provided.
Answer the question based only on the following content.
If you cannot answer the question based on the content, say plainly that the content does not cover it.
Do not invent facts that are not in the content.

Content:
{{ file_content }}

Question: {{ question }}

Reply with JSON: {"answer": string}
""",
    "global_chatbot": """\
You are SkillForge AI, a helpful and knowledgeable assistant for the SkillForge platform.
Answer the user's question clearly and concisely. You can answer general knowledge questions.

User Question: {{ question }}

Reply with JSON: {"answer": string}
""",
    "generate_learning_plan": """\
You are an expert curriculum designer and learning strategist for SkillForge, an online learning platform.
A user wants to learn the skill: "{{ skill_name }}".

Generate a structured, actionable and encouraging learning plan to help them reach proficiency.
The plan must consist of {{ min_milestones }} to {{ max_milestones }} logical milestones, progressing from foundational concepts to advanced topics or practical application.

For each milestone you MUST provide:
1. A concise "milestone_title".
2. A "description" of what the user should focus on or achieve (2-4 sentences).
3. An "estimated_duration" (e.g. "1-2 days", "1 week").
4. "suggested_search_keywords": 3-5 specific terms the user can type into the SkillForge search bar to find video, audio or text content for the milestone.

Optionally, for each milestone:
5. "external_resource_suggestions": 2-3 general web search queries or resource types. Provide these ONLY when the milestone covers a niche, highly specific or advanced topic. Do NOT provide URLs.
6. "quiz": 3-5 multiple-choice questions about this milestone, each shaped as {{ question_shape }}.

The plan must have:
- "skill_to_learn": the skill name exactly as provided.
- "plan_title": a catchy, descriptive title.
- "overview": a brief, encouraging overview (2-3 sentences).
- "milestones": the ordered list of milestones.

Estimated durations should be realistic for a self-paced learner. Ensure every required milestone field is populated.
Reply with JSON only.
""",
    "validate_and_describe_content": """\
You validate content and write descriptions for an educational skill-sharing platform.

Determine whether the content is educational, and write a detailed description of it that is at least 1000 characters long.

Content Type: {{ content_type }}
{% if inline_text is not none %}
Content:
{{ inline_text }}
{% else %}
The content is attached to this message ({{ mime_type }}).
{% endif %}

Reply with JSON: {"is_valid": true or false, "description": string}
""",
}


class PromptRenderer:
    """Binds flow inputs into the named prompt templates."""

    def __init__(self, templates: dict[str, str] | None = None) -> None:
        self.env = Environment(
            loader=DictLoader(templates or TEMPLATES),
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )
        self.env.globals["question_shape"] = QUESTION_SHAPE

    def render(self, name: str, **context) -> str:
        return self.env.get_template(name).render(**context)

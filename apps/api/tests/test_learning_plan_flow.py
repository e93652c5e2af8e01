import copy

import pytest

from skillforge.ai.client import ModelClient
from skillforge.ai.errors import ModelInvocationError, PlanGenerationError
from skillforge.ai.flows import FailureMode, FlowPolicy, GenerateLearningPlanFlow
from skillforge.core.config import Settings
from skillforge.services.ai_service import AIService
from skillforge.utils.messages import PLAN_INCOMPLETE, PLAN_NO_MILESTONES


@pytest.mark.asyncio
async def test_generates_plan_with_ordered_milestones(ai, model, plan_reply):
    model.queue(plan_reply)

    plan = await ai.generate_learning_plan({"skill_name": "Python"})

    assert plan.plan_title == "From Zero to Pythonista"
    assert [m.milestone_title for m in plan.milestones] == ["Syntax basics", "Functions and modules", "Build a project"]
    assert len(plan.milestones[0].quiz) == 2
    assert plan.milestones[1].quiz is None
    assert plan.milestones[2].external_resource_suggestions == ["python packaging user guide"]
    assert '"Python"' in model.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_extra_keywords_are_trimmed_to_five(ai, model, plan_reply):
    reply = copy.deepcopy(plan_reply)
    reply["milestones"][0]["suggested_search_keywords"] = ["a", "b", "c", "d", "e", "f", "g"]
    model.queue(reply)

    plan = await ai.generate_learning_plan({"skill_name": "Python"})

    assert plan.milestones[0].suggested_search_keywords == ["a", "b", "c", "d", "e"]


@pytest.mark.asyncio
async def test_missing_fields_default_from_the_request(ai, model, plan_reply):
    reply = copy.deepcopy(plan_reply)
    del reply["skill_to_learn"]
    reply["plan_title"] = None
    model.queue(reply)

    plan = await ai.generate_learning_plan({"skill_name": "  Python  "})

    assert plan.skill_to_learn == "Python"
    assert "Python" in plan.plan_title


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "breakage",
    [
        lambda m: m.update(description=""),
        lambda m: m.pop("estimated_duration"),
        lambda m: m.update(milestone_title=None),
        lambda m: m.update(suggested_search_keywords=["only", "two"]),
    ],
)
async def test_incomplete_milestone_fails_the_plan(ai, model, plan_reply, breakage):
    reply = copy.deepcopy(plan_reply)
    breakage(reply["milestones"][1])
    model.queue(reply)

    with pytest.raises(PlanGenerationError) as excinfo:
        await ai.generate_learning_plan({"skill_name": "Python"})

    assert str(excinfo.value) == PLAN_INCOMPLETE


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [None, {"plan_title": "Empty"}, {"milestones": []}])
async def test_plan_without_milestones_fails(ai, model, reply):
    model.queue(reply)

    with pytest.raises(PlanGenerationError) as excinfo:
        await ai.generate_learning_plan({"skill_name": "Python"})

    assert str(excinfo.value) == PLAN_NO_MILESTONES


@pytest.mark.asyncio
async def test_too_few_milestones_fails(ai, model, plan_reply):
    reply = copy.deepcopy(plan_reply)
    reply["milestones"] = reply["milestones"][:2]
    model.queue(reply)

    with pytest.raises(PlanGenerationError, match="2 milestones"):
        await ai.generate_learning_plan({"skill_name": "Python"})


@pytest.mark.asyncio
async def test_invocation_failure_becomes_plan_error(ai, model):
    cause = ModelInvocationError("connection reset")
    model.queue(cause)

    with pytest.raises(PlanGenerationError) as excinfo:
        await ai.generate_learning_plan({"skill_name": "Python"})

    assert "Failed to generate learning plan" in str(excinfo.value)
    assert excinfo.value.__cause__ is cause


@pytest.mark.asyncio
async def test_malformed_milestone_quiz_is_dropped(ai, model, plan_reply):
    reply = copy.deepcopy(plan_reply)
    reply["milestones"][0]["quiz"] = [{"question_text": "?", "options": ["x"], "correct_answer_index": 7}]
    model.queue(reply)

    plan = await ai.generate_learning_plan({"skill_name": "Python"})

    assert plan.milestones[0].quiz == []


def test_plan_flow_refuses_fallback_policy():
    client = ModelClient(api_key=None, model="test")

    with pytest.raises(ValueError):
        GenerateLearningPlanFlow(client, policy=FlowPolicy(FailureMode.FALLBACK, FailureMode.RAISE))
    with pytest.raises(ValueError):
        AIService(client, {"generate_learning_plan": {"on_error": "fallback"}})


@pytest.mark.asyncio
async def test_too_many_milestones_fails(ai, model, plan_reply):
    reply = copy.deepcopy(plan_reply)
    reply["milestones"] = [copy.deepcopy(reply["milestones"][1]) for _ in range(11)]
    model.queue(reply)

    with pytest.raises(PlanGenerationError, match="11 milestones"):
        await ai.generate_learning_plan({"skill_name": "Python"})


@pytest.mark.asyncio
async def test_flow_policies_load_from_environment(model, monkeypatch):
    monkeypatch.setenv("FLOW_POLICIES", '{"global_chatbot": {"on_error": "raise"}}')
    configured = Settings(_env_file=None)
    ai = AIService(model, configured.flow_policies)
    model.queue(ModelInvocationError("down"))

    assert configured.flow_policies == {"global_chatbot": {"on_error": "raise"}}
    assert ai.flows["global_chatbot"].policy == FlowPolicy(FailureMode.FALLBACK, FailureMode.RAISE)
    with pytest.raises(ModelInvocationError):
        await ai.ask_global_chatbot({"question": "Hi"})

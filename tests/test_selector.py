import asyncio

import pytest

from src.omnivore_annotator.errors import EmptyResultError, MissingInputError
from src.omnivore_annotator.models import Result
from src.omnivore_annotator.selector import BestOfNSelector
from tests.fakes import FakeCompletions

REFINE = "Pick the best"


def scripted(candidates, refined):
    """Answer candidate calls from ``candidates`` in order, refinement with ``refined``."""
    remaining = list(candidates)
    refinement_inputs = []

    def answer(instruction, content):
        if instruction == REFINE:
            refinement_inputs.append(content)
            return refined
        return remaining.pop(0)

    return answer, refinement_inputs


def test_select_best_refines_joined_candidates():
    answer, refinement_inputs = scripted(["A", "B", "C"], "B-refined")
    completions = FakeCompletions(answer)
    selector = BestOfNSelector(completions, REFINE)

    result = asyncio.run(selector.select_best("Summarize", 3, "some text"))

    assert result.is_ok
    assert result.value == "B-refined"
    assert refinement_inputs == ["A\nB\nC"]


@pytest.mark.parametrize("n", [1, 2, 5])
def test_select_best_issues_n_plus_one_calls(n):
    completions = FakeCompletions(lambda instruction, content: "text")
    selector = BestOfNSelector(completions, REFINE)

    asyncio.run(selector.select_best("Summarize", n, "some text"))

    assert len(completions.calls) == n + 1
    candidate_calls = completions.calls[:n]
    assert all(c["instruction"] == "Summarize" for c in candidate_calls)
    assert all(c["content"] == "some text" for c in candidate_calls)
    # candidates are not escaped; only the final answer is
    assert all(c["escape"] is False for c in candidate_calls)
    assert completions.calls[-1]["instruction"] == REFINE
    assert completions.calls[-1]["escape"] is True


def test_select_best_runs_candidates_concurrently():
    completions = FakeCompletions(lambda instruction, content: "text")
    selector = BestOfNSelector(completions, REFINE)

    asyncio.run(selector.select_best("Summarize", 4, "some text"))

    assert completions.max_in_flight == 4


@pytest.mark.parametrize("n", [0, -1])
def test_select_best_rejects_non_positive_n_without_calls(n):
    completions = FakeCompletions(lambda instruction, content: "text")
    selector = BestOfNSelector(completions, REFINE)

    with pytest.raises(ValueError):
        asyncio.run(selector.select_best("Summarize", n, "some text"))

    assert completions.calls == []


@pytest.mark.parametrize("instruction,content", [("", "text"), ("Summarize", "")])
def test_select_best_rejects_empty_inputs_without_calls(instruction, content):
    completions = FakeCompletions(lambda i, c: "text")
    selector = BestOfNSelector(completions, REFINE)

    with pytest.raises(MissingInputError):
        asyncio.run(selector.select_best(instruction, 3, content))

    assert completions.calls == []


def test_select_best_drops_failed_candidates():
    answer, refinement_inputs = scripted(
        ["A", Result.fail(EmptyResultError("nothing")), "C"], "refined"
    )
    selector = BestOfNSelector(FakeCompletions(answer), REFINE)

    result = asyncio.run(selector.select_best("Summarize", 3, "some text"))

    assert result.value == "refined"
    assert refinement_inputs == ["A\nC"]


def test_select_best_all_candidates_failed_skips_refinement():
    failure = Result.fail(EmptyResultError("nothing"))
    completions = FakeCompletions(lambda instruction, content: failure)
    selector = BestOfNSelector(completions, REFINE)

    result = asyncio.run(selector.select_best("Summarize", 2, "some text"))

    assert not result.is_ok
    assert isinstance(result.error, EmptyResultError)
    assert len(completions.calls) == 2


def test_selector_requires_refinement_prompt():
    with pytest.raises(MissingInputError):
        BestOfNSelector(FakeCompletions(lambda i, c: "x"), "")

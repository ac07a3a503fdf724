import asyncio
from types import SimpleNamespace

import openai
import pytest

from src.omnivore_annotator.completions import CompletionClient
from src.omnivore_annotator.config import Settings
from src.omnivore_annotator.errors import (
    CompletionError,
    ConfigurationError,
    EmptyResultError,
    MissingInputError,
)
from tests.fakes import RecordingOpenAI


def make_client(responses, **overrides):
    fake = RecordingOpenAI(responses)
    return CompletionClient(Settings(**overrides), client=fake), fake


def test_complete_sends_single_user_message_with_profile():
    client, fake = make_client(["  The summary.  "], openai_model="gpt-test")

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert result.is_ok
    assert result.value == "The summary."
    assert len(fake.calls) == 1
    call = fake.calls[0]
    assert call["model"] == "gpt-test"
    assert call["temperature"] == 0.5
    assert call["messages"] == [
        {
            "role": "user",
            "content": "Instruction: Summarize\nArticle content: Article text",
        }
    ]


def test_complete_uses_json_settings_blob():
    client, fake = make_client(
        ["ok"], openai_settings='{"model": "gpt-big", "temperature": 0.1}'
    )

    asyncio.run(client.complete("Summarize", "Article text"))

    assert fake.calls[0]["model"] == "gpt-big"
    assert fake.calls[0]["temperature"] == 0.1


def test_complete_escapes_quotes_and_backslashes():
    client, _ = make_client(['He said "go" \\ now'])

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert result.value == 'He said \\"go\\" \\\\ now'


def test_complete_without_escape_only_trims():
    client, _ = make_client(['  He said "go"  '])

    result = asyncio.run(client.complete("Summarize", "Article text", escape=False))

    assert result.value == 'He said "go"'


@pytest.mark.parametrize("instruction,content", [("", "text"), ("Summarize", "")])
def test_complete_requires_instruction_and_content(instruction, content):
    client, fake = make_client(["never used"])

    with pytest.raises(MissingInputError):
        asyncio.run(client.complete(instruction, content))

    assert fake.calls == []


def test_complete_zero_choices_is_empty_result():
    client, _ = make_client([[]])

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert not result.is_ok
    assert isinstance(result.error, EmptyResultError)


def test_complete_choice_without_message_is_empty_result():
    completion = SimpleNamespace(choices=[SimpleNamespace(message=None)])
    client, _ = make_client([completion])

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert not result.is_ok
    assert isinstance(result.error, EmptyResultError)


def test_complete_blank_text_is_empty_result():
    client, _ = make_client(["   "])

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert not result.is_ok
    assert isinstance(result.error, EmptyResultError)


def test_complete_provider_error_is_returned():
    client, _ = make_client([openai.OpenAIError("Simulated API failure")])

    result = asyncio.run(client.complete("Summarize", "Article text"))

    assert not result.is_ok
    assert isinstance(result.error, CompletionError)
    assert "Simulated API failure" in str(result.error)


def test_invalid_settings_fail_at_construction():
    with pytest.raises(ConfigurationError):
        CompletionClient(Settings(openai_settings="nope"), client=RecordingOpenAI([]))

"""Unit tests for the insight generator (goalmate/agent/insights.py)"""
import pytest
import pybreaker
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

from goalmate.agent import insights
from goalmate.agent.insights import (
    DEFAULTS,
    ERROR_MODULES,
    OfflineInsightGenerator,
    OpenAIInsightGenerator,
    get_insight_generator,
    parse_module_suggestions,
)
from goalmate.exceptions import ProviderError, ProviderUnavailableError


def completion(text):
    """Shape of an openai chat completion response"""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


@pytest.fixture
def generator():
    """OpenAI generator with a dummy client (never reaches the network)"""
    return OpenAIInsightGenerator(api_key="", model="openai:gpt-4o-mini", client=MagicMock())


# ============================================================================
# Offline Generator Tests
# ============================================================================

@pytest.mark.asyncio
async def test_offline_generator_returns_unconfigured_defaults():
    offline = OfflineInsightGenerator()

    assert await offline.ask_module_question("Learn React", "JSX") == DEFAULTS["question"]["unconfigured"]
    assert await offline.acknowledge("Learn React", "JSX", "Q?", "A") == DEFAULTS["acknowledgment"]["unconfigured"]
    assert await offline.chat_reply("Alex", "Finished my run") == "Got it, thanks for the update!"


@pytest.mark.asyncio
async def test_offline_generator_sample_modules():
    modules = await OfflineInsightGenerator().suggest_modules("Rust")

    assert [m["name"] for m in modules] == [
        "AI Suggested: Introduction to Rust",
        "AI Suggested: Core Concepts of Rust",
        "AI Suggested: Practical Application for Rust",
    ]


@pytest.mark.asyncio
async def test_offline_generator_weekly_quest_raises_unavailable():
    with pytest.raises(ProviderUnavailableError):
        await OfflineInsightGenerator().suggest_weekly_quest(["Learn React"])


# ============================================================================
# OpenAI Generator Tests
# ============================================================================

@pytest.mark.asyncio
async def test_question_text_is_stripped(generator):
    with patch.object(generator, "_complete", AsyncMock(return_value="  What is JSX?\n")):
        assert await generator.ask_module_question("Learn React", "JSX") == "What is JSX?"


@pytest.mark.asyncio
async def test_empty_response_uses_empty_default(generator):
    with patch.object(generator, "_complete", AsyncMock(return_value="   ")):
        assert await generator.ask_module_question("Learn React", "JSX") == DEFAULTS["question"]["empty"]


@pytest.mark.asyncio
async def test_provider_failure_uses_error_default(generator):
    """Test a failing provider never surfaces to the caller"""
    with patch.object(generator, "_complete", AsyncMock(side_effect=ValueError("bad request"))):
        assert await generator.acknowledge("Learn React", "JSX", "Q?", "A") == DEFAULTS["acknowledgment"]["error"]
        assert await generator.chat_reply("Alex", "hi") == "Cool, thanks for letting me know."


@pytest.mark.asyncio
async def test_open_circuit_counts_as_unavailable(generator):
    with patch.object(generator, "_complete", AsyncMock(side_effect=pybreaker.CircuitBreakerError("open"))):
        with pytest.raises(ProviderUnavailableError):
            await generator.suggest_weekly_quest(["Learn React"])

        assert await generator.ask_module_question("Learn React", "JSX") == DEFAULTS["question"]["unconfigured"]


@pytest.mark.asyncio
async def test_weekly_quest_failure_raises_provider_error(generator):
    with patch.object(generator, "_complete", AsyncMock(side_effect=ValueError("bad request"))):
        with pytest.raises(ProviderError):
            await generator.suggest_weekly_quest(["Learn React"])


@pytest.mark.asyncio
async def test_weekly_quest_returns_raw_text(generator):
    raw = "Quest Title: A\nDescription: B\nRelated Goal: Learn React\n"
    with patch.object(generator, "_complete", AsyncMock(return_value=raw)):
        assert await generator.suggest_weekly_quest(["Learn React"]) == raw.strip()


@pytest.mark.asyncio
async def test_unconfigured_openai_generator():
    unconfigured = OpenAIInsightGenerator(api_key="")

    assert unconfigured.configured is False
    assert await unconfigured.ask_module_question("Learn React", "JSX") == DEFAULTS["question"]["unconfigured"]


@pytest.mark.asyncio
async def test_complete_calls_chat_completions(reset_insight_breaker):
    """Test the real call path through the breaker with a stubbed client"""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion("Explain props."))
    generator = OpenAIInsightGenerator(api_key="", model="openai:gpt-4o-mini", client=client)

    question = await generator.ask_module_question("Learn React", "Props")

    assert question == "Explain props."
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert "Props" in kwargs["messages"][0]["content"]


# ============================================================================
# Module Suggestion Tests
# ============================================================================

def test_parse_module_suggestions_fenced_json():
    text = '```json\n[{"name": "Basics", "description": "Start here"}, {"name": "Ownership"}]\n```'

    modules = parse_module_suggestions(text)

    assert modules == [
        {"name": "Basics", "description": "Start here"},
        {"name": "Ownership", "description": ""},
    ]


def test_parse_module_suggestions_rejects_non_list():
    with pytest.raises(ValueError):
        parse_module_suggestions('{"name": "Basics"}')


@pytest.mark.asyncio
async def test_suggest_modules_malformed_returns_error_modules(generator):
    with patch.object(generator, "_complete", AsyncMock(return_value="not json")):
        modules = await generator.suggest_modules("Rust")

    assert modules == ERROR_MODULES


@pytest.mark.asyncio
async def test_suggest_modules_parsed(generator):
    with patch.object(generator, "_complete", AsyncMock(return_value='[{"name": "Borrowing", "description": "d"}]')):
        modules = await generator.suggest_modules("Rust", "Systems language")

    assert modules == [{"name": "Borrowing", "description": "d"}]


# ============================================================================
# Factory Tests
# ============================================================================

def test_get_insight_generator_without_key(monkeypatch):
    monkeypatch.setattr(insights, "OPENAI_API_KEY", "")

    assert isinstance(get_insight_generator(), OfflineInsightGenerator)


def test_get_insight_generator_with_key(monkeypatch):
    monkeypatch.setattr(insights, "OPENAI_API_KEY", "sk-test")

    with patch.object(insights, "OpenAIInsightGenerator") as generator_cls:
        get_insight_generator()

    generator_cls.assert_called_once_with()

"""
Insight generator - generative text boundary

Supplies verification questions, acknowledgments, weekly quest text, buddy
chat replies and module suggestions. Every call except the weekly quest
returns a usable default when the provider is unconfigured, failing or
returns nothing; the core never blocks on or surfaces provider failures.

The weekly quest call lets ProviderUnavailableError/ProviderError through
so the quest layer can pick the matching fallback quest.
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional
from uuid import uuid4

import pybreaker

from goalmate.agent import prompts
from goalmate.config import OPENAI_API_KEY, INSIGHT_MODEL, INSIGHT_TIMEOUT_SECONDS
from goalmate.exceptions import ProviderError, ProviderUnavailableError, wrap_external_exception
from goalmate.resilience.circuit_breaker import INSIGHT_BREAKER, with_circuit_breaker
from goalmate.resilience.metrics import (
    record_default_used,
    record_provider_call,
    record_provider_failure,
)
from goalmate.resilience.retry import retry_with_backoff

logger = logging.getLogger(__name__)

# Default texts per call: unconfigured provider / empty response / provider error
DEFAULTS: Dict[str, Dict[str, str]] = {
    "question": {
        "unconfigured": "AI is not available. In your own words, what was the key takeaway from this module?",
        "empty": "Could not generate a question. Please describe what you learned in this module.",
        "error": "Error fetching question. How would you summarize this module's main idea?",
    },
    "acknowledgment": {
        "unconfigured": "Great effort! Thanks for sharing your thoughts.",
        "empty": "Thanks for your input! Keep learning!",
        "error": "Thanks for your response! Keep pushing forward!",
    },
    "chat_reply": {
        "unconfigured": "Got it, thanks for the update!",
        "empty": "Sounds good!",
        "error": "Cool, thanks for letting me know.",
    },
}


def sample_modules(goal_title: str) -> List[Dict[str, str]]:
    """Module suggestions used when the provider is not configured"""
    return [
        {
            "name": f"AI Suggested: Introduction to {goal_title}",
            "description": f"An AI-generated module covering the basics of {goal_title}.",
        },
        {
            "name": f"AI Suggested: Core Concepts of {goal_title}",
            "description": f"An AI-generated module exploring key concepts related to {goal_title}.",
        },
        {
            "name": f"AI Suggested: Practical Application for {goal_title}",
            "description": f"An AI-generated module focused on applying {goal_title}.",
        },
    ]


ERROR_MODULES: List[Dict[str, str]] = [
    {
        "name": "AI Error: Could not generate introduction",
        "description": "There was an issue generating modules with AI.",
    },
    {
        "name": "AI Error: Could not generate core concepts",
        "description": "Please try again later or add modules manually.",
    },
]


def parse_module_suggestions(text: str) -> List[Dict[str, str]]:
    """
    Parse a JSON array of {name, description}, tolerating markdown fences

    Raises:
        ValueError: not a JSON array of objects with a name
    """
    json_str = text.strip()
    if "```json" in json_str:
        json_str = json_str.split("```json")[1].split("```")[0].strip()
    elif "```" in json_str:
        json_str = json_str.split("```")[1].split("```")[0].strip()

    data = json.loads(json_str)
    if not isinstance(data, list):
        raise ValueError("Module suggestions were not a JSON array")

    modules = []
    for item in data:
        if not isinstance(item, dict) or not item.get("name"):
            raise ValueError(f"Malformed module suggestion: {item!r}")
        modules.append({"name": str(item["name"]), "description": str(item.get("description") or "")})
    return modules


class InsightGenerator:
    """
    Base generator: call sites, defaults and fallbacks

    Subclasses implement `_generate(call, prompt)` returning raw text, raising
    ProviderUnavailableError when they can't reach a provider and
    ProviderError when the provider failed.
    """

    async def _generate(self, call: str, prompt: str) -> str:
        raise NotImplementedError

    async def _text_or_default(self, call: str, prompt: str) -> str:
        defaults = DEFAULTS[call]
        try:
            text = await self._generate(call, prompt)
        except ProviderUnavailableError:
            logger.warning(f"Insight provider not available for {call}, using default")
            record_default_used(call, "unconfigured")
            return defaults["unconfigured"]
        except Exception as e:
            logger.error(f"Error generating {call}: {e}", exc_info=True)
            record_default_used(call, "error")
            return defaults["error"]

        text = (text or "").strip()
        if not text:
            record_default_used(call, "empty")
            return defaults["empty"]
        return text

    async def ask_module_question(self, goal_title: str, module_name: str) -> str:
        """One open-ended question checking understanding of a module"""
        return await self._text_or_default(
            "question", prompts.module_question_prompt(goal_title, module_name)
        )

    async def acknowledge(self, goal_title: str, module_name: str, question: str, answer: str) -> str:
        """Encouraging acknowledgment of an answer (never a grade)"""
        return await self._text_or_default(
            "acknowledgment", prompts.acknowledgment_prompt(goal_title, module_name, question, answer)
        )

    async def chat_reply(self, buddy_name: str, message: str) -> str:
        """Short, casual reply in the voice of the accountability buddy"""
        return await self._text_or_default("chat_reply", prompts.chat_reply_prompt(buddy_name, message))

    async def suggest_weekly_quest(self, active_goal_titles: List[str]) -> str:
        """
        Raw labeled-line quest text for goalmate.gamification.quests

        Raises:
            ProviderUnavailableError: provider not configured / circuit open
            ProviderError: provider call failed
        """
        text = await self._generate("weekly_quest", prompts.weekly_quest_prompt(active_goal_titles))
        return (text or "").strip()

    async def suggest_modules(self, goal_title: str, goal_description: Optional[str] = None) -> List[Dict[str, str]]:
        """3-5 module suggestions as [{name, description}]"""
        try:
            text = await self._generate("modules", prompts.module_suggestions_prompt(goal_title, goal_description))
            return parse_module_suggestions(text or "")
        except ProviderUnavailableError:
            logger.warning("Insight provider not available, returning sample modules")
            record_default_used("modules", "unconfigured")
            return sample_modules(goal_title)
        except Exception as e:
            logger.error(f"Error generating modules: {e}", exc_info=True)
            record_default_used("modules", "error")
            return [dict(module) for module in ERROR_MODULES]


class OfflineInsightGenerator(InsightGenerator):
    """Provider-less generator: every call resolves to its default"""

    async def _generate(self, call: str, prompt: str) -> str:
        raise ProviderUnavailableError("Insight provider not configured", operation=call)


class OpenAIInsightGenerator(InsightGenerator):
    """OpenAI chat completions behind a circuit breaker and retry"""

    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        model: str = INSIGHT_MODEL,
        timeout: float = INSIGHT_TIMEOUT_SECONDS,
        client: Optional[Any] = None
    ):
        # Model name from config (e.g., "openai:gpt-4o-mini" -> "gpt-4o-mini")
        self.model_name = model.split(":", 1)[1] if ":" in model else model
        self._client = client
        if self._client is None and api_key:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    @property
    def configured(self) -> bool:
        return self._client is not None

    @with_circuit_breaker(INSIGHT_BREAKER)
    async def _complete(self, prompt: str) -> str:
        response = await self._client.chat.completions.create(
            model=self.model_name,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=500,
        )
        return response.choices[0].message.content or ""

    async def _generate(self, call: str, prompt: str) -> str:
        if not self.configured:
            raise ProviderUnavailableError("OPENAI_API_KEY not configured", operation=call)

        request_id = str(uuid4())
        started = time.monotonic()
        try:
            text = await retry_with_backoff(self._complete, prompt)
        except pybreaker.CircuitBreakerError as e:
            record_provider_failure(call, type(e).__name__)
            raise ProviderUnavailableError(
                "Insight provider circuit is open",
                operation=call,
                request_id=request_id,
                cause=e
            )
        except Exception as e:
            record_provider_call(call, success=False, duration=time.monotonic() - started)
            record_provider_failure(call, type(e).__name__)
            wrapped = wrap_external_exception(e, operation=call)
            if isinstance(wrapped, ProviderError):
                raise wrapped
            raise ProviderError(f"{call} failed: {e}", operation=call, request_id=request_id, cause=e)

        record_provider_call(call, success=True, duration=time.monotonic() - started)
        logger.debug(f"Provider {call} response: {text[:200]!r}")
        return text


def get_insight_generator() -> InsightGenerator:
    """OpenAI-backed generator when a key is configured, otherwise offline"""
    if OPENAI_API_KEY:
        return OpenAIInsightGenerator()
    logger.info("OPENAI_API_KEY not set, insight calls will return default text")
    return OfflineInsightGenerator()

"""OpenAI-backed text generation for name suggestions and descriptions."""

from __future__ import annotations

import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat.chat_completion import Choice
from pydantic import ValidationError as PydanticValidationError

from nomena.schemas.names import NameSuggestion
from nomena.services.collaborators.errors import CollaboratorFailure

logger = logging.getLogger(__name__)

COLLABORATOR = "text-generator"

MIN_DESCRIPTION_WORDS = 50

FRESH_NAME_DESCRIPTION = (
    "This name appears to be fresh and unique. There might be no known history "
    "or famous bearers yet — but your child could be the first to shape its story."
)

NAMES_PROMPT = """
Generate a list of {count} unique baby names for a {gender} that are inspired by the theme "{theme}" and have English origin.
Each name must be accompanied by a short 1-2 sentence summary that explains the name's origin and meaning.
Only include names that are truly of English linguistic or historical origin.
Respond with a JSON object of this exact shape and nothing else:
{{"names": [{{"name": "Ash", "summary": "An English nature-inspired name referring to the ash tree, symbolizing resilience and wisdom."}}]}}
""".strip()

DESCRIPTION_SYSTEM_PROMPT = (
    "You are a creative assistant that always writes beautiful, poetic and "
    "informative name descriptions. Every response must be at least 150 words "
    "long and feel emotionally rich."
)

DESCRIPTION_PROMPT = """
Write a poetic and imaginative description of the baby name "{name}".
Your answer must contain at least 3 distinct paragraphs and be at least 150 words long.

Include:
- The etymology and meaning of the name (if known)
- Its historical or cultural use (real or symbolic)
- Notable people or literary references (if any)
- Emotional and symbolic associations
- Phonetic character and overall impression

Even if the name is common or well-known, do not shorten the answer.
Use lyrical language, rich metaphors and evoke emotional imagery.
This should read like a mini-essay or narrative.

Do not list bullet points. Write in flowing prose.
""".strip()

REFERENCE_PROMPT = """

Ground the factual parts of your answer in this reference summary:
{summary}
"""


def parse_name_suggestions(content: str | None) -> list[NameSuggestion]:
    """Parse the generator's JSON answer, failing on anything malformed.

    The payload must be an object with a non-empty ``names`` list whose items
    carry a non-empty ``name``. No repair is attempted: truncated or
    decorated output is a :class:`CollaboratorFailure`.
    """

    if not content or not content.strip():
        raise CollaboratorFailure(COLLABORATOR, "empty response")
    try:
        payload: Any = json.loads(content)
    except json.JSONDecodeError as exc:
        raise CollaboratorFailure(COLLABORATOR, f"response is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict) or not isinstance(payload.get("names"), list):
        raise CollaboratorFailure(COLLABORATOR, "response has no 'names' list")

    try:
        suggestions = [NameSuggestion.model_validate(item) for item in payload["names"]]
    except PydanticValidationError as exc:
        raise CollaboratorFailure(COLLABORATOR, f"malformed suggestion: {exc}") from exc

    if not suggestions:
        raise CollaboratorFailure(COLLABORATOR, "no names returned")
    return suggestions


def _word_count(text: str) -> int:
    return len(text.split())


class OpenAITextGenerator:
    """Chat-completions client for both generation tasks."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        names_model: str = "gpt-3.5-turbo",
        description_model: str = "gpt-4",
    ) -> None:
        self._client = client
        self._names_model = names_model
        self._description_model = description_model

    async def suggest_names(
        self, theme: str, gender: str, count: int = 10
    ) -> list[NameSuggestion]:
        prompt = NAMES_PROMPT.format(count=count, gender=gender, theme=theme)
        choice = await self._complete(
            model=self._names_model,
            messages=[{"role": "user", "content": prompt}],
            response_format={"type": "json_object"},
        )
        if choice.finish_reason == "length":
            raise CollaboratorFailure(COLLABORATOR, "name list was truncated")
        suggestions = parse_name_suggestions(choice.message.content)
        logger.info(
            "Generated %s name suggestions for theme %r (%s)", len(suggestions), theme, gender
        )
        return suggestions[:count]

    async def describe_name(
        self, name: str, reference_summary: str | None = None
    ) -> str:
        """Return long-form prose about ``name``.

        Answers shorter than :data:`MIN_DESCRIPTION_WORDS` words are replaced
        with :data:`FRESH_NAME_DESCRIPTION`.
        """

        prompt = DESCRIPTION_PROMPT.format(name=name)
        if reference_summary:
            prompt += REFERENCE_PROMPT.format(summary=reference_summary)

        choice = await self._complete(
            model=self._description_model,
            messages=[
                {"role": "system", "content": DESCRIPTION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=1200,
            temperature=0.7,
        )
        text = (choice.message.content or "").strip()
        if not text:
            raise CollaboratorFailure(COLLABORATOR, f"empty description for {name!r}")
        if _word_count(text) < MIN_DESCRIPTION_WORDS:
            logger.info("Description for %r too short; using fresh-name text", name)
            return FRESH_NAME_DESCRIPTION
        return text

    async def _complete(self, **params: Any) -> Choice:
        try:
            response = await self._client.chat.completions.create(**params)
        except OpenAIError as exc:
            logger.warning("OpenAI request failed: %s", exc)
            raise CollaboratorFailure(COLLABORATOR, str(exc)) from exc

        if not response.choices:
            raise CollaboratorFailure(COLLABORATOR, "response has no choices")
        return response.choices[0]


__all__ = [
    "FRESH_NAME_DESCRIPTION",
    "MIN_DESCRIPTION_WORDS",
    "OpenAITextGenerator",
    "parse_name_suggestions",
]

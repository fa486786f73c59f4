"""Name suggestions and long-form descriptions composed from collaborators."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from nomena.schemas.favorites import Gender
from nomena.schemas.names import GeneratedName, NameDescription, NameSuggestion
from nomena.services.collaborators.errors import CollaboratorFailure

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    async def suggest_names(
        self, theme: str, gender: str, count: int = 10
    ) -> list[NameSuggestion]: ...

    async def describe_name(
        self, name: str, reference_summary: str | None = None
    ) -> str: ...


class ReferenceLookup(Protocol):
    async def lookup(self, name: str) -> str | None: ...


class NameService:
    """Ask the text generator for names and enrich them with reference facts.

    The reference lookup is advisory: when it is missing or fails the
    description is generated without it and ``used_wiki`` stays ``False``.
    """

    def __init__(
        self,
        generator: TextGenerator,
        reference: ReferenceLookup | None = None,
    ) -> None:
        self._generator = generator
        self._reference = reference

    async def generate_names(
        self,
        theme: str,
        gender: Gender | str,
        count: int = 10,
        *,
        include_descriptions: bool = False,
    ) -> list[GeneratedName]:
        gender_value = gender.value if isinstance(gender, Gender) else gender
        suggestions = await self._generator.suggest_names(theme.strip(), gender_value, count)
        names = [GeneratedName(**suggestion.model_dump()) for suggestion in suggestions]
        if not include_descriptions:
            return names

        results = await asyncio.gather(
            *(self.describe(item.name) for item in names), return_exceptions=True
        )
        enriched: list[GeneratedName] = []
        for item, result in zip(names, results):
            if isinstance(result, CollaboratorFailure):
                logger.warning("Skipping description for %s: %s", item.name, result)
                enriched.append(item)
            elif isinstance(result, BaseException):
                raise result
            else:
                enriched.append(
                    item.model_copy(
                        update={
                            "description": result.description,
                            "used_wiki": result.used_wiki,
                        }
                    )
                )
        return enriched

    async def describe(self, name: str) -> NameDescription:
        name = name.strip()
        summary = await self._reference_summary(name)
        text = await self._generator.describe_name(name, summary)
        return NameDescription(name=name, description=text, used_wiki=summary is not None)

    async def _reference_summary(self, name: str) -> str | None:
        if self._reference is None:
            return None
        try:
            return await self._reference.lookup(name)
        except CollaboratorFailure as exc:
            logger.warning("Reference lookup for %s failed: %s", name, exc)
            return None


__all__ = ["NameService", "ReferenceLookup", "TextGenerator"]

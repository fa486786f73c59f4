from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from nomena.schemas.favorites import Gender


class NameSuggestion(BaseModel):
    """One candidate as returned by the text generator."""

    name: str = Field(..., min_length=1)
    summary: str = ""

    @field_validator("name", "summary", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


class NameGenerateRequest(BaseModel):
    theme: str = Field(..., min_length=1, max_length=255)
    gender: Gender = Gender.NEUTRAL
    count: int = Field(10, ge=1, le=30)
    include_descriptions: bool = Field(
        False,
        description="Also fetch a long-form description for every suggestion.",
    )


class GeneratedName(NameSuggestion):
    description: str | None = None
    used_wiki: bool = False


class NameGenerateResponse(BaseModel):
    theme: str
    gender: Gender
    names: list[GeneratedName]


class NameDescribeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class NameDescription(BaseModel):
    """Long-form description of a single name."""

    name: str
    description: str
    used_wiki: bool = False


__all__ = [
    "GeneratedName",
    "NameDescribeRequest",
    "NameDescription",
    "NameGenerateRequest",
    "NameGenerateResponse",
    "NameSuggestion",
]

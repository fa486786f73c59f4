"""Clients for the external services the name workflows depend on."""

from .errors import CollaboratorFailure
from .reference import WikipediaSummaryClient
from .text_generator import OpenAITextGenerator

__all__ = [
    "CollaboratorFailure",
    "OpenAITextGenerator",
    "WikipediaSummaryClient",
]

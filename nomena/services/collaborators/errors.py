"""Failure raised by external collaborators (text generation, reference lookup)."""

from __future__ import annotations


class CollaboratorFailure(Exception):
    """An external service failed or returned output that could not be parsed."""

    def __init__(self, collaborator: str, message: str) -> None:
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator
        self.message = message


__all__ = ["CollaboratorFailure"]

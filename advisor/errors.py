from __future__ import annotations


class AdvisorError(Exception):
    """Base class for errors surfaced to callers of the advisor pipeline."""


class NotFoundError(AdvisorError):
    def __init__(self, kind: str, key: str) -> None:
        super().__init__(f"{kind} not found: {key}")
        self.kind = kind
        self.key = key

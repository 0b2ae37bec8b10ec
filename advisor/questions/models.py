from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QuestionCategory = Literal["preference", "factual", "constraint"]
QuestionType = Literal["scale", "choice"]

OPTIONS_PER_QUESTION = 3

_DEFAULT_OPTIONS: dict[str, list[str]] = {
    "scale": ["Low", "Medium", "High"],
    "choice": ["Option 1", "Option 2", "Option 3"],
}


class QuestionTheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: QuestionCategory
    prompt: str
    signal_key: str
    description: str = ""


class MoodQuestion(BaseModel):
    id: str
    prompt: str
    type: QuestionType
    signal_key: str
    options: list[str] = Field(default_factory=list)
    suggested_response: str | None = None
    reason: str | None = None

    @field_validator("options", mode="before")
    @classmethod
    def _clean_options(cls, value):
        if not value:
            return []
        cleaned: list[str] = []
        for option in value:
            text = str(option).strip().strip("\"'").strip()
            if text:
                cleaned.append(text)
        return cleaned

    @model_validator(mode="after")
    def _exactly_three_options(self) -> MoodQuestion:
        options = self.options[:OPTIONS_PER_QUESTION]
        for default in _DEFAULT_OPTIONS[self.type]:
            if len(options) >= OPTIONS_PER_QUESTION:
                break
            if default not in options:
                options.append(default)
        while len(options) < OPTIONS_PER_QUESTION:
            options.append(f"Option {len(options) + 1}")
        self.options = options
        return self


class MoodCheckResult(BaseModel):
    questions: list[MoodQuestion]
    follow_up: str | None = None
    debug_notes: list[str] = Field(default_factory=list)

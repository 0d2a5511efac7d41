"""Pydantic models shared by tools and mini-games. JSON keys are camelCase on the wire."""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for anything exchanged with the model or the UI."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ToolArgs(WireModel):
    """Base for tool argument payloads; unknown keys are rejected."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class MiniGameResult(WireModel):
    """Normalized outcome of any mini-game, handed to the scoreboard."""

    score: float = Field(ge=0)
    max_score: float = Field(gt=0)
    commentary: str
    correct_answer: str | None = None
    bonus_info: str | None = None

    @model_validator(mode="after")
    def score_within_scale(self) -> "MiniGameResult":
        if self.score > self.max_score:
            raise ValueError("score must not exceed max_score")
        return self


class TemplateResult(WireModel):
    """What a question or trigger tool hands back to the UI layer."""

    template_type: str
    prompt: str | None = None
    subtitle: str | None = None
    params: dict = Field(default_factory=dict)

# models.py
# Data contracts for the ReAct agent loop.
# No business logic lives here: pure schema and validation.

import json
from collections.abc import Awaitable, Callable
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    USER = "user"
    AGENT = "agent"


class ConversationMessage(BaseModel):
    """One turn of the caller-owned chat history."""

    role: Role
    content: str


class ToolSpec(BaseModel):
    """A named, described, text-in/text-out capability exposed to the model."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique name the model uses in 'Action:'.")
    description: str = Field(..., description="Shown to the model in the tool catalogue.")
    invoke: Callable[[str], Awaitable[str]] = Field(..., exclude=True)


class ToolInvocation(BaseModel):
    """The model asked for a tool to be run."""

    tool: str
    tool_input: str
    log: str = Field(default="", description="Raw model text the decision was parsed from.")


class FinalAnswer(BaseModel):
    """The model finished, or its output could not be parsed (fallback=True)."""

    output: str
    log: str = ""
    fallback: bool = Field(default=False, description="True when produced by the parse fallback.")


Decision = ToolInvocation | FinalAnswer


class AgentStep(BaseModel):
    """A scratchpad entry: one dispatched action and what came back."""

    action: ToolInvocation
    observation: str


class TraceRole(str, Enum):
    PROMPT = "prompt"
    RESPONSE = "response"


class TraceEntry(BaseModel):
    role: TraceRole
    content: str

    def to_json(self) -> str:
        """One self-describing JSON line for the trace sink."""
        return json.dumps({"role": self.role.value, "content": self.content}, ensure_ascii=False)


class SearchHit(BaseModel):
    """One similarity-search result, ordered by descending score by the index."""

    content: str
    metadata: dict = Field(default_factory=dict)
    score: float | None = None

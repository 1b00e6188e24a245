# chatcore/schemas.py

"""
Canonical content model shared by every chatcore backend.

These Pydantic models are the only vocabulary that crosses the generator
contract: the orchestrator builds a `GenerateContentRequest`, and every
adapter hands back `GenerateContentResponse` objects, whatever the provider
speaks on the wire.

Field names are snake_case in Python and camelCase on the wire
(`inline_data` ↔ `inlineData`), so the cloud backend can serialise requests
with `model_dump(by_alias=True, exclude_none=True, mode="json")` and parse
its responses with `model_validate`.

🧠 Invariants:
- Turn order is meaningful and is preserved by every translation.
- `Role` is a closed set; each adapter maps it bijectively onto its provider's roles.
- Requests are frozen once built; responses are built fresh per call / per chunk.
- Usage metadata is either absent or taken from provider data, never invented.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, protected_namespaces=())


# ─── Conversation ──────────────────────────────────────────────────────────────

class Role(str, Enum):
    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class InlineData(_WireModel):
    mime_type: str
    data: str  # base64


class FunctionCall(_WireModel):
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    id: str | None = None


class FunctionResponse(_WireModel):
    name: str
    response: Dict[str, Any] = Field(default_factory=dict)
    id: str | None = None


_PART_KINDS = ("text", "inline_data", "function_call", "function_response")


class Part(_WireModel):
    """
    One element of a turn. A tagged variant: at most one payload kind is set.

    `thought` marks provider-flagged reasoning text, which is never part of
    the visible answer.
    """
    text: str | None = None
    inline_data: InlineData | None = None
    function_call: FunctionCall | None = None
    function_response: FunctionResponse | None = None
    thought: bool | None = None

    @model_validator(mode="after")
    def check_single_kind(self) -> "Part":
        kinds = [k for k in _PART_KINDS if getattr(self, k) is not None]
        if len(kinds) > 1:
            raise ValueError(f"a part carries exactly one payload, got {kinds}")
        return self

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)


class Content(_WireModel):
    """
    One conversation turn: a role and an ordered sequence of parts.
    """
    role: Role | None = None
    parts: List[Part] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """Concatenated visible text of the turn; non-text and thought parts are skipped."""
        return "".join(p.text for p in self.parts if p.text and not p.thought)


def _as_content(value: Any, role: Role) -> Any:
    if isinstance(value, str):
        return Content(role=role, parts=[Part(text=value)])
    return value


# ─── Request ───────────────────────────────────────────────────────────────────

class GenerationConfig(_WireModel):
    """
    Recognised generation options. Serialised as the cloud backend's
    `generationConfig`; the local backend maps what it can onto its own options.
    """
    response_mime_type: str | None = None
    response_schema: Dict[str, Any] | None = None
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: List[str] | None = None
    candidate_count: int | None = None

    @property
    def wants_json(self) -> bool:
        """True when the caller asked for structured (JSON) output."""
        return self.response_mime_type == "application/json" or self.response_schema is not None


class GenerateContentRequest(_WireModel):
    """
    One generation call: the full turn history plus system instruction and config.

    The conversation is re-sent in full on every call; adapters keep no
    memory of earlier requests. `contents` also accepts a single `Content`
    or a bare string (one user turn).
    """
    model_config = ConfigDict(frozen=True)

    model: str | None = None
    contents: List[Content]
    system_instruction: Content | None = None
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    tools: List[Dict[str, Any]] | None = None

    @field_validator("contents", mode="before")
    @classmethod
    def coerce_contents(cls, v: Any) -> Any:
        if isinstance(v, (str, Content, dict)):
            v = [v]
        return [_as_content(c, Role.USER) for c in v]

    @field_validator("system_instruction", mode="before")
    @classmethod
    def coerce_system_instruction(cls, v: Any) -> Any:
        return _as_content(v, Role.SYSTEM)


# ─── Response ──────────────────────────────────────────────────────────────────

class FinishReason(str, Enum):
    FINISH_REASON_UNSPECIFIED = "FINISH_REASON_UNSPECIFIED"
    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    RECITATION = "RECITATION"
    LANGUAGE = "LANGUAGE"
    BLOCKLIST = "BLOCKLIST"
    PROHIBITED_CONTENT = "PROHIBITED_CONTENT"
    SPII = "SPII"
    MALFORMED_FUNCTION_CALL = "MALFORMED_FUNCTION_CALL"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value: object) -> "FinishReason":
        # providers add reasons faster than we do
        return cls.OTHER


class Candidate(_WireModel):
    content: Content = Field(default_factory=lambda: Content(role=Role.MODEL))
    index: int = 0
    finish_reason: FinishReason | None = None


class UsageMetadata(_WireModel):
    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None


class GenerateContentResponse(_WireModel):
    """
    A complete answer, or one element of a streamed answer.

    `finish_reason` on the first candidate is set only when the provider
    reported completion; partial chunks leave it `None`.
    """
    candidates: List[Candidate] = Field(default_factory=list)
    usage_metadata: UsageMetadata | None = None
    model_version: str | None = None

    @property
    def text(self) -> str | None:
        if not self.candidates:
            return None
        return self.candidates[0].content.text

    @property
    def finish_reason(self) -> FinishReason | None:
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason


# ─── Token counting & embeddings ───────────────────────────────────────────────

class CountTokensResponse(_WireModel):
    total_tokens: int = Field(ge=0)


class EmbedContentRequest(_WireModel):
    model_config = ConfigDict(frozen=True)

    model: str | None = None
    contents: List[Content]

    @field_validator("contents", mode="before")
    @classmethod
    def coerce_contents(cls, v: Any) -> Any:
        if isinstance(v, (str, Content, dict)):
            v = [v]
        return [_as_content(c, Role.USER) for c in v]


class ContentEmbedding(_WireModel):
    values: List[float] = Field(default_factory=list)


class EmbedContentResponse(_WireModel):
    embeddings: List[ContentEmbedding] = Field(default_factory=list)

"""
Core type definitions for rsview.

The backend payload is decoded into frozen pydantic models with strict
scalar types: a field that is absent or carries the wrong JSON type rejects
the whole payload before anything downstream sees it.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated, Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr
from pydantic import ValidationError as SchemaError

from .errors import PayloadFormatError

NonEmptyStr = Annotated[StrictStr, Field(min_length=1)]
LineNumber = Annotated[StrictInt, Field(ge=1)]
ColumnNumber = Annotated[StrictInt, Field(ge=0)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestStatus(StrEnum):
    """Lifecycle states of a tracked request."""
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class TokenInfo(BaseModel):
    """One lexer token as reported by the backend."""
    type: NonEmptyStr
    text: NonEmptyStr
    line: LineNumber
    column: ColumnNumber

    model_config = ConfigDict(frozen=True, extra="ignore")


class ParseTreeInfo(BaseModel):
    """Parse tree in both textual renderings the backend produces."""
    lisp: StrictStr
    dot: StrictStr

    model_config = ConfigDict(frozen=True, extra="ignore")


class ErrorInfo(BaseModel):
    """A syntax or lexical error found in the submitted source."""
    line: LineNumber
    column: ColumnNumber
    message: StrictStr

    model_config = ConfigDict(frozen=True, extra="ignore")


class AnalysisResult(BaseModel):
    """
    Structured result of one analysis request.

    Immutable once decoded. The wire name of ``parse_tree`` is ``parseTree``.
    """
    success: StrictBool
    tokens: Tuple[TokenInfo, ...]
    parse_tree: ParseTreeInfo = Field(alias="parseTree")
    errors: Tuple[ErrorInfo, ...]

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    @classmethod
    def from_payload(cls, payload: Any) -> "AnalysisResult":
        """
        Decode a parsed JSON body into an AnalysisResult.

        Args:
            payload: Body as returned by the transport (dict, list or str).

        Returns:
            AnalysisResult: The decoded result.

        Raises:
            PayloadFormatError: On the first structural mismatch.
        """
        if not isinstance(payload, dict):
            raise PayloadFormatError(
                "Malformed analysis payload",
                f"expected a JSON object, got {type(payload).__name__}",
            )
        try:
            return cls.model_validate(payload)
        except SchemaError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"]) or "<root>"
            raise PayloadFormatError(
                "Malformed analysis payload", f"{location}: {first['msg']}"
            ) from e

    def to_payload(self) -> dict:
        """Serialize back to the wire shape."""
        return self.model_dump(by_alias=True, mode="json")

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class RequestRecord(BaseModel):
    """
    Audit record for one outstanding or finished request.

    Owned by the RequestTracker. Consumers only ever receive copies.
    """
    id: str
    description: str = ""
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    duration_ms: Optional[float] = None
    status: RequestStatus = RequestStatus.PENDING
    result: Any = None
    error: Optional[str] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> "RequestRecord":
        return self.model_copy()


class CacheEntry(BaseModel):
    """A cached analysis result keyed by the fingerprint of its source text."""
    fingerprint: str
    result: AnalysisResult
    cached_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True)


class GraphRenderState(BaseModel):
    """
    Last successful render of one surface.

    Replaced wholesale on re-render; only ``zoom_factor`` changes in between.
    """
    surface_id: str
    source_text: str
    rendered_artifact: str
    timestamp: datetime = Field(default_factory=utcnow)
    zoom_factor: float = Field(default=1.0, ge=0.1, le=5.0)

    model_config = ConfigDict(frozen=True)


class ServerStatus(BaseModel):
    """Outcome of a health probe."""
    online: bool
    message: str
    checked_at: datetime = Field(default_factory=utcnow)

    model_config = ConfigDict(frozen=True)

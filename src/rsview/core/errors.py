"""
Error taxonomy for rsview.

Validation errors are never retried. Transport errors carry a
``permanent`` flag that the retry policy consults: client errors (HTTP 4xx)
point at a malformed request and cannot succeed on a second attempt, all
other transport failures are treated as transient. Render errors describe
why a surface could not show a graph.
"""


class RsviewError(Exception):
    """Base class for all rsview errors."""


# --- Validation ---


class AnalysisValidationError(RsviewError):
    """Input or payload failed validation. Never retried."""


class InputValidationError(AnalysisValidationError):
    """The submitted source text is empty or whitespace only."""


class PayloadFormatError(AnalysisValidationError):
    """
    The backend answered with a payload that does not match AnalysisResult.

    Attributes:
        detail: First structural mismatch reported by the schema check.
    """

    def __init__(self, message: str, detail: str = ""):
        self.detail = detail
        super().__init__(f"{message}: {detail}" if detail else message)


# --- Transport ---


class TransportError(RsviewError):
    """A single HTTP call failed."""

    permanent: bool = False

    @property
    def transient(self) -> bool:
        return not self.permanent


class TransportTimeout(TransportError):
    """The call exceeded its wall-clock budget and was cancelled."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Request timed out after {timeout:g}s")


class HttpStatusError(TransportError):
    """
    The server answered with a non-2xx status.

    Attributes:
        status: HTTP status code.
        reason: Reason phrase sent by the server.
    """

    def __init__(self, status: int, reason: str = ""):
        self.status = status
        self.reason = reason
        super().__init__(f"HTTP {status}: {reason}")

    @property
    def permanent(self) -> bool:  # type: ignore[override]
        return 400 <= self.status < 500


class NetworkError(TransportError):
    """Connection-level failure (DNS, refused connection, reset, ...)."""


class ResponseDecodeError(TransportError):
    """The server declared a JSON body that could not be decoded."""


# --- Rendering ---


class RenderError(RsviewError):
    """Rendering a graph failed."""


class RenderUnavailableError(RenderError):
    """The layout engine could not be initialized."""


class NothingToExportError(RenderError):
    """Export was requested for a surface that has never rendered a graph."""

    def __init__(self, surface_id: str):
        self.surface_id = surface_id
        super().__init__(f"Nothing to export for surface '{surface_id}'")

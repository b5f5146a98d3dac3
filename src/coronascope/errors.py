"""Pipeline error types.

Every error here is terminal for the request that raised it: nothing is
retried and no partial result is produced. The API layer turns them into
JSON responses via ``to_payload``.
"""

from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for failures while producing a detection result."""

    status_code: int = 500
    message: str = "Pipeline failed"

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body describing this failure."""
        return {"status": "error", "message": self.message, "error": str(self)}


class UpstreamFetchError(PipelineError):
    """The source image could not be retrieved.

    ``upstream_status`` is ``None`` when the request never produced a
    response (DNS failure, timeout, refused connection).
    """

    status_code = 502
    message = "Failed to fetch upstream image"

    def __init__(self, url: str, upstream_status: int | None, reason: str) -> None:
        detail = reason if upstream_status is None else f"{upstream_status} {reason}"
        super().__init__(f"{url}: {detail}")
        self.url = url
        self.upstream_status = upstream_status
        self.reason = reason

    def to_payload(self) -> dict[str, Any]:
        return {
            "status": "error",
            "message": self.message,
            "upstream_status": self.upstream_status,
            "upstream_status_text": self.reason,
            "url": self.url,
        }


class DecodeError(PipelineError):
    """The encoded image bytes could not be turned into pixels."""

    message = "Image decode failed"


class EncodeError(PipelineError):
    """The preview buffer could not be serialized."""

    message = "Image encode failed"

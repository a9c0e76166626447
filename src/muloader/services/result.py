"""Result models for the loopback endpoint and the shutdown phase."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class DeactivationStatus(StrEnum):
    """Outcome reported by the loopback deactivation endpoint."""

    DONE = "done"
    NOOP = "noop"
    INVALID = "invalid"


_HTTP_STATUS = {
    DeactivationStatus.DONE: 200,
    DeactivationStatus.NOOP: 200,
    DeactivationStatus.INVALID: 403,
}


class DeactivationResult(BaseModel):
    """Response of one loopback deactivation request.

    Attributes:
        status: ``done``, ``noop`` (extension file gone), or ``invalid``
            (token rejected).
        identifier: Target extension, as submitted.
        message: Human-readable detail.
    """

    model_config = {"frozen": True}

    status: DeactivationStatus
    identifier: str = ""
    message: str = ""

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.status]

    @property
    def ok(self) -> bool:
        return self.status is DeactivationStatus.DONE


class ShutdownReport(BaseModel):
    """What the shutdown phase did."""

    model_config = {"frozen": True}

    committed: bool = False
    deactivated: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)

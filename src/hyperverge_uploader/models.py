"""Data models for the Hyperverge uploader."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any


class Action(StrEnum):
    """Operations supported by the Hyperverge API."""

    TEST = "test"
    READ_PAN = "readPAN"
    READ_PASSPORT = "readPassport"
    READ_AADHAAR = "readAadhaar"
    READ_KYC = "readKYC"


def _with_response_fields(
    data: dict[str, Any], outcome: "UploadSuccess | UploadFailure"
) -> dict[str, Any]:
    """Add the service's status fields to ``data``, leaving out missing ones."""
    for key, value in (
        ("status", outcome.status),
        ("statusCode", outcome.status_code),
        ("result", outcome.result),
    ):
        if value is not None:
            data[key] = value
    return data


@dataclass(frozen=True)
class UploadSuccess:
    """A document the service accepted and read."""

    action: Action
    file: Path
    status: Any = None
    status_code: Any = None
    result: Any = None

    def __post_init__(self) -> None:
        """Validate upload result."""
        if self.status is None and self.result is None:
            raise ValueError("Successful upload must have a status or a result")

    @property
    def succeeded(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return _with_response_fields(
            {"action": str(self.action), "file": str(self.file)}, self
        )


@dataclass(frozen=True)
class UploadFailure:
    """A document upload that failed, with whatever the service sent back."""

    action: Action
    file: Path
    err: str
    status: Any = None
    status_code: Any = None
    result: Any = None

    def __post_init__(self) -> None:
        """Validate upload result."""
        if not self.err:
            raise ValueError("Failed upload must have an err")

    @property
    def succeeded(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        data = _with_response_fields(
            {"action": str(self.action), "file": str(self.file)}, self
        )
        data["err"] = self.err
        return data


UploadOutcome = UploadSuccess | UploadFailure


@dataclass(frozen=True)
class BatchResult:
    """Aggregate of every upload attempted in directory mode."""

    results: tuple[UploadSuccess, ...] = ()
    errors: tuple[UploadFailure, ...] = ()

    @property
    def total(self) -> int:
        return len(self.results) + len(self.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [outcome.to_dict() for outcome in self.results],
            "errors": [outcome.to_dict() for outcome in self.errors],
        }

"""Forum topic creation payload.

Wire names are camelCase (``isPinned``, ``categoryId``); Python attributes
are snake_case. Validation is strict: booleans are not coerced from strings,
UUIDs must be in canonical hyphenated form, and a payload that validates is
reproduced unchanged by :meth:`CreateForumTopic.to_payload`.
"""

from __future__ import annotations

import json
import re
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
)

# Any version, canonical 8-4-4-4-12 form, case-insensitive
UUID_RE = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class PayloadError(Exception):
    """Base exception for payload errors."""

    pass


class PayloadParseError(PayloadError):
    """Raised when a payload document is not a JSON object."""

    pass


class PayloadValidationError(PayloadError):
    """Raised when a payload fails field validation."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.errors = errors or []


def _not_empty(value: str) -> str:
    if value == "":
        raise ValueError("should not be empty")
    return value


def _uuid(value: str) -> str:
    if not UUID_RE.fullmatch(value):
        raise ValueError("must be a UUID")
    return value


NonEmptyString = Annotated[StrictStr, AfterValidator(_not_empty)]
UUIDString = Annotated[StrictStr, AfterValidator(_uuid)]


class CreateForumTopic(BaseModel):
    """Payload for creating a forum topic.

    ``title`` and ``categoryId`` are required. ``isPinned``, ``isClosed``
    and ``courseId`` are optional; an explicit ``null`` counts as absent.
    Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    title: NonEmptyString
    is_pinned: StrictBool | None = Field(default=None, alias="isPinned")
    is_closed: StrictBool | None = Field(default=None, alias="isClosed")
    course_id: UUIDString | None = Field(default=None, alias="courseId")
    category_id: UUIDString = Field(alias="categoryId")

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the wire form, omitting absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


def validate_topic_payload(payload: Any) -> CreateForumTopic:
    """Validate a decoded payload.

    Raises:
        PayloadValidationError: with one ``{"loc", "msg", "type"}`` entry per
            rejected field.
    """
    try:
        return CreateForumTopic.model_validate(payload)
    except ValidationError as e:
        errors = [
            {
                "loc": ".".join(str(x) for x in err["loc"]) or "(root)",
                "msg": err["msg"].removeprefix("Value error, "),
                "type": err["type"],
            }
            for err in e.errors()
        ]
        lines = [f"  - {err['loc']}: {err['msg']}" for err in errors]
        raise PayloadValidationError(  # noqa: B904
            "Forum topic payload rejected:\n" + "\n".join(lines),
            errors=errors,
        )


def load_topic_payload(source: str | Path) -> dict[str, Any]:
    """Read a JSON payload from a file, or from stdin when *source* is ``-``.

    Raises:
        PayloadParseError: If the file is missing, is not JSON, or is not a
            JSON object.
    """
    if str(source) == "-":
        text = sys.stdin.read()
        origin = "<stdin>"
    else:
        path = Path(source)
        if not path.exists():
            raise PayloadParseError(f"Payload file not found: {path}")
        text = path.read_text()
        origin = str(path)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise PayloadParseError(f"Invalid JSON in {origin}: {e}")  # noqa: B904

    if not isinstance(data, Mapping):
        raise PayloadParseError(f"Expected a JSON object in {origin}, got {type(data).__name__}")
    return dict(data)

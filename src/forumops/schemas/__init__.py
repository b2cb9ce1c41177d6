"""Request payload schemas consumed by the forum service."""

from .forum import (
    CreateForumTopic,
    PayloadError,
    PayloadParseError,
    PayloadValidationError,
    load_topic_payload,
    validate_topic_payload,
)

__all__ = [
    "CreateForumTopic",
    "validate_topic_payload",
    "load_topic_payload",
    "PayloadError",
    "PayloadParseError",
    "PayloadValidationError",
]

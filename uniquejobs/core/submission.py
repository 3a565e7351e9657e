"""
Job submission record

The mutable record a dispatcher hands to the digest computer before enqueue.
Field names follow Python conventions; the wire payload uses the queue's keys,
most notably ``class`` for the handler name.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

CLASS_KEY = "class"
QUEUE_KEY = "queue"
ARGS_KEY = "args"
UNIQUE_PREFIX_KEY = "unique_prefix"
UNIQUE_ARGS_KEY = "unique_args"
UNIQUE_DIGEST_KEY = "unique_digest"

ENGINE_FIELDS = (UNIQUE_PREFIX_KEY, UNIQUE_ARGS_KEY, UNIQUE_DIGEST_KEY)


def is_unset(value: Any) -> bool:
    """A field is unset while it is None or an empty string."""
    return value is None or value == ""


class JobSubmission(BaseModel):
    """
    A job about to be enqueued.

    ``handler_class``, ``queue`` and ``args`` come from the caller. The three
    ``unique_*`` fields are filled in by the digest computer only while they
    are unset, so a caller may pre-seed any of them.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    handler_class: str = Field(alias=CLASS_KEY)
    queue: str = "default"
    args: List[Any] = Field(default_factory=list)
    unique_prefix: Optional[str] = None
    unique_args: Optional[List[Any]] = None
    unique_digest: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "JobSubmission":
        """Build a submission from a wire payload dict."""
        return cls.model_validate(payload)

    def to_payload(self) -> Dict[str, Any]:
        """Return the wire payload form, omitting unset engine fields."""
        payload = {
            CLASS_KEY: self.handler_class,
            QUEUE_KEY: self.queue,
            ARGS_KEY: self.args,
        }
        for key in ENGINE_FIELDS:
            value = getattr(self, key)
            if not is_unset(value):
                payload[key] = value
        return payload

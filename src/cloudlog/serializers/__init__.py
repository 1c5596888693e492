"""Serializers for requests, responses and errors.

None of them raise: a failure yields a fallback record and a DEBUG line on
the ``cloudlog.serializers`` logger.
"""

from .errors import serialize_error
from .http import serialize_request, serialize_response, truncate

__all__ = [
    "serialize_error",
    "serialize_request",
    "serialize_response",
    "truncate",
]

"""Identifier parsing shared by every route that takes an id in the path."""
from __future__ import annotations

import uuid

from vidtube.core.errors import ValidationFault


def parse_id(raw: str, kind: str) -> uuid.UUID:
    """Parse ``raw`` as a UUID or raise a 400 naming the kind of id."""
    try:
        return uuid.UUID(str(raw))
    except (ValueError, AttributeError, TypeError):
        raise ValidationFault(message=f"Invalid {kind} ID")

"""Identifier and annotation key helpers."""

import uuid

from .models import DEFAULT_ANNOTATION_PREFIX


def new_short_id() -> str:
    """Return an 8 character unique suffix for generated object names."""
    return uuid.uuid4().hex[:8]


def annotation_key(name: str, prefix: str = DEFAULT_ANNOTATION_PREFIX) -> str:
    """Namespace a bare annotation name, e.g. ``header`` -> ``<prefix>/header``."""
    return f"{prefix}/{name}"

"""Base models for values read from or sent to the Kubernetes API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class K8sValueBase(BaseModel):
    """Immutable base for every value object the verifier passes around.

    Instances are snapshots: once built from an API response they are never
    modified, and a fresh read produces a fresh instance.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )


def _dig(obj: dict[str, Any] | None, *keys: str, default: Any = None) -> Any:
    """Safely traverse nested keys of a raw CRD dict."""
    current: Any = obj
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key)
    return current if current is not None else default

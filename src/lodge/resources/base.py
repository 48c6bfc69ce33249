"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared pieces for typed API resources.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for API payload models: camelCase on the wire, unknown fields kept."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


def unwrap(payload: Any) -> Any:
    """Return ``payload["data"]`` for ``{data: ...}`` envelopes, else the payload."""
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload

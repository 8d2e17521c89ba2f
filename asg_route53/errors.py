"""errors.py: exceptions raised while decoding the tag and updating zones."""
from __future__ import annotations

from typing import Optional


class Route53TagError(Exception):
    """Base class for every error raised by asg_route53."""


class TagDecodeError(Route53TagError):
    """The tag value could not be decoded. Aborts the whole invocation."""

    def __init__(self, message: str, *, group_name: str, tag_name: str, cause: str, value: Optional[str] = None):
        super().__init__(f"ASG: {group_name} tag: '{tag_name}' {message}")
        self.group_name = group_name
        self.tag_name = tag_name
        self.cause = cause
        self.value = value


class ZonePipelineError(Route53TagError):
    """One zone could not be updated. Sibling zones are unaffected."""

    def __init__(self, message: str, *, zone_id: str, cause: str):
        super().__init__(message)
        self.zone_id = zone_id
        self.cause = cause

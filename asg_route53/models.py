"""models.py: value types passed between the pipeline stages."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .config import CHANGE_COMMENT, LAUNCH_EVENT, TERMINATE_EVENT

UPSERT = "UPSERT"
DELETE = "DELETE"


class EventKind(Enum):
    LAUNCH = LAUNCH_EVENT
    TERMINATE = TERMINATE_EVENT

    @classmethod
    def from_event_name(cls, name: Optional[str]) -> Optional["EventKind"]:
        """Return the kind for an autoscaling event name, or None if we don't handle it."""
        for kind in cls:
            if kind.value == name:
                return kind
        return None


@dataclass(frozen=True)
class LifecycleEvent:
    group_name: str
    instance_id: str
    kind: EventKind
    cause: str = ""


@dataclass(frozen=True)
class ZoneRecordSpec:
    """One record to maintain in one hosted zone.

    ``record_name`` holds the bare prefix (marker already stripped) while
    ``needs_fixup`` is set; ``zone_name`` and ``is_private`` are only known once
    the zone has been resolved.
    """

    zone_id: str
    record_type: str
    record_name: str
    ttl: int
    needs_fixup: bool = False
    zone_name: str = ""
    is_private: bool = False
    resolved: bool = False

    @property
    def uses_dns_names(self) -> bool:
        # CNAME records point at instance DNS names, A records at IPs
        return self.record_type == "CNAME"


@dataclass(frozen=True)
class TagDecodeResult:
    specs: Tuple[ZoneRecordSpec, ...] = ()
    zone_count: int = 0

    def merge(self, other: "TagDecodeResult") -> "TagDecodeResult":
        return TagDecodeResult(self.specs + other.specs, self.zone_count + other.zone_count)


@dataclass(frozen=True)
class MutationBatch:
    zone_id: str
    action: str
    record_name: str
    record_type: str
    set_identifier: str
    weight: int
    ttl: int
    value: str
    comment: str = field(default=CHANGE_COMMENT)

    def to_change_batch(self) -> Dict[str, Any]:
        """Keyword arguments for route53.change_resource_record_sets."""
        return {
            'HostedZoneId': self.zone_id,
            'ChangeBatch': {
                'Comment': self.comment,
                'Changes': [
                    {
                        'Action': self.action,
                        'ResourceRecordSet': {
                            'Name': self.record_name,
                            'Type': self.record_type,
                            'SetIdentifier': self.set_identifier,
                            'Weight': self.weight,
                            'TTL': self.ttl,
                            'ResourceRecords': [{'Value': self.value}]
                        }
                    }
                ]
            }
        }

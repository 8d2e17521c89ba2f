"""tag_parser.py: read and decode the Route53 tag of an Auto Scaling group.

Tag value formats::

    HostedZoneId:record-name                 Z0987654321123:www.example.com   (CNAME, TTL 1)
    HostedZoneId:type:record-name            Z0987654321123:A:www.example.com (TTL 1)
    HostedZoneId:type:record-name:ttl        Z0987654321123:CNAME:www.example.com:30
    HostedZoneId:type:prefix#:ttl            Z0987654321123:CNAME:www.#:30    ('#' replaced by the zone name)
    HostedZoneId1,HostedZoneId2:prefix:ttl   Z0987654321123,Z1234567890123:www.:30
    ["<entry>", "<entry>", ...]              JSON array of any of the above

An empty value or ``none`` means "leave this group alone".
"""
from __future__ import annotations

import json
import logging
import re
from typing import Optional, Sequence

from .config import DEFAULT_RECORD_TYPE, DEFAULT_TTL, IGNORED_TAG_VALUES, PREFIX_MARKER, RECORD_TYPES, TAG_NAME
from .errors import TagDecodeError
from .models import TagDecodeResult, ZoneRecordSpec

logger = logging.getLogger()


def fetch_tag_value(autoscaling, group_name: str, tag_name: str = TAG_NAME) -> Optional[str]:
    """Return the raw tag value for the group, or None when the tag is not defined."""
    response = autoscaling.describe_tags(
        Filters=[
            {'Name': 'auto-scaling-group', 'Values': [group_name]},
            {'Name': 'key', 'Values': [tag_name]}
        ],
        MaxRecords=1
    )
    tags = response.get('Tags', [])
    if not tags:
        return None
    return tags[0].get('Value', '')


def needs_prefix_fixup(record_name: str, zone_ids: Sequence[str]) -> bool:
    """A record name is a prefix when it ends with the marker or is shared by several zones."""
    return record_name.endswith(PREFIX_MARKER) or len(zone_ids) > 1


def _parse_ttl(raw: str) -> Optional[int]:
    # plain ASCII digits only; int() would also take '1_0' or non-ASCII digits
    raw = raw.strip()
    if not re.fullmatch(r"[0-9]+", raw):
        return None
    return int(raw)


def parse_tag_entry(entry: str, group_name: str, tag_name: str = TAG_NAME) -> TagDecodeResult:
    """Decode one tag entry into one ZoneRecordSpec per zone id."""

    def fail(message: str, cause: str, value: str) -> TagDecodeError:
        return TagDecodeError(f"{message} Received value: '{value}'.", group_name=group_name,
                              tag_name=tag_name, cause=cause, value=value)

    tokens = entry.split(':')
    if not 2 <= len(tokens) <= 4:
        raise fail("has too few or too many ':' separators (expecting 'HostedZoneId:record-name', "
                   "'HostedZoneId:type:record-name' or 'HostedZoneId:type:record-name:ttl').",
                   "field_count", entry)

    zone_ids = [zone_id.strip() for zone_id in tokens[0].split(',')]
    if not all(zone_ids):
        raise fail("has invalid ZoneId field (expecting Route53 ZoneId(s) separated by commas).",
                   "zone_ids", tokens[0])

    record_type = DEFAULT_RECORD_TYPE
    ttl = DEFAULT_TTL

    if len(tokens) == 2:
        record_name = tokens[1]
    elif len(tokens) == 3 and tokens[1].strip() not in RECORD_TYPES and _parse_ttl(tokens[2]) is not None:
        # HostedZoneIds:record-name:ttl
        record_name = tokens[1]
        ttl = _parse_ttl(tokens[2])
    else:
        record_type = tokens[1].strip()
        if record_type not in RECORD_TYPES:
            raise fail(f"has invalid type field (expecting one of {', '.join(RECORD_TYPES)}).",
                       "record_type", tokens[1])
        record_name = tokens[2]
        if len(tokens) == 4:
            ttl = _parse_ttl(tokens[3])
            if ttl is None:
                raise fail("has invalid ttl value (expecting a non-negative integer).", "ttl", tokens[3])

    record_name = record_name.strip()
    if not record_name:
        raise fail("has an empty record name.", "record_name", entry)

    fixup = needs_prefix_fixup(record_name, zone_ids)
    if record_name.endswith(PREFIX_MARKER):
        record_name = record_name[:-1]

    specs = tuple(
        ZoneRecordSpec(zone_id=zone_id, record_type=record_type, record_name=record_name,
                       ttl=ttl, needs_fixup=fixup)
        for zone_id in zone_ids
    )
    for spec in specs:
        logger.info(f"Tag entry for ASG '{group_name}' added zone: {spec}")
    return TagDecodeResult(specs=specs, zone_count=len(specs))


def decode_tag_value(tag_value: Optional[str], group_name: str, tag_name: str = TAG_NAME) -> Optional[TagDecodeResult]:
    """Decode the whole tag value.

    Returns None when the value says to ignore the group (missing, empty or
    ``none``). Raises TagDecodeError on the first malformed entry; entries
    decoded before it are discarded.
    """
    if tag_value is None or tag_value.strip() in IGNORED_TAG_VALUES:
        return None

    value = tag_value.strip()
    result = TagDecodeResult()

    if value.startswith('['):
        try:
            entries = json.loads(value)
        except ValueError as e:
            raise TagDecodeError(f"is not a valid JSON array: {e}. Received value: '{value}'.",
                                 group_name=group_name, tag_name=tag_name, cause="json", value=value) from e
        if not isinstance(entries, list):
            raise TagDecodeError(f"is not a JSON array. Received value: '{value}'.",
                                 group_name=group_name, tag_name=tag_name, cause="json", value=value)

        for index, entry in enumerate(entries):
            if not isinstance(entry, str):
                raise TagDecodeError(f"entry [{index}] is not a string. Received value: {json.dumps(entry)}.",
                                     group_name=group_name, tag_name=tag_name, cause="json", value=value)
            try:
                result = result.merge(parse_tag_entry(entry, group_name, tag_name))
            except TagDecodeError:
                logger.info(f"Tag entry [{index}] for ASG '{group_name}' failed to decode: {json.dumps(entry)}")
                raise
    else:
        result = parse_tag_entry(value, group_name, tag_name)

    if result.zone_count < 1:
        raise TagDecodeError(f"does not define any hosted zone. Received value: '{value}'.",
                             group_name=group_name, tag_name=tag_name, cause="no_zones", value=value)
    return result


def describe_specs(specs: Sequence[ZoneRecordSpec]) -> str:
    return ", ".join(f"{spec.zone_id}:{spec.record_type}:{spec.record_name}" for spec in specs)

"""zones.py: fill in hosted zone details for a decoded zone entry."""
from __future__ import annotations

import json
import logging
from dataclasses import replace

from botocore.exceptions import ClientError

from .errors import ZonePipelineError
from .models import ZoneRecordSpec

logger = logging.getLogger()


def resolve_zone(route53, spec: ZoneRecordSpec) -> ZoneRecordSpec:
    """Look up the hosted zone and return the spec with zone name, privacy and final record name set."""
    try:
        response = route53.get_hosted_zone(Id=spec.zone_id)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        error_message = e.response.get("Error", {}).get("Message")
        raise ZonePipelineError(f"Failed to get hosted zone {spec.zone_id}: [{error_code}] {error_message}",
                                zone_id=spec.zone_id, cause="zone_lookup") from e
    logger.debug(f"Hosted zone {spec.zone_id}: {json.dumps(response, default=str)}")

    hosted_zone = response['HostedZone']
    zone_name = hosted_zone['Name']
    is_private = bool(hosted_zone.get('Config', {}).get('PrivateZone', False))

    record_name = spec.record_name
    if spec.needs_fixup:
        # record_name only holds the prefix at this point
        record_name = record_name + zone_name

    resolved = replace(spec, zone_name=zone_name, is_private=is_private, record_name=record_name, resolved=True)
    logger.info(f"Resolved zone {spec.zone_id} ('{zone_name}', private={is_private}) record name: '{record_name}'")
    return resolved

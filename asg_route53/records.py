"""records.py: build the Route53 change for one resolved zone entry.

Launch: the record value is read from the live instance.
Terminate: the record value is read back from Route53, because the
instance's addresses may already be released when the event arrives.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

from .config import DNS_WEIGHT
from .errors import ZonePipelineError
from .models import DELETE, UPSERT, EventKind, LifecycleEvent, MutationBatch, ZoneRecordSpec

logger = logging.getLogger()


def _primary_interface(instance: Dict[str, Any]) -> Dict[str, Any]:
    interfaces = instance.get('NetworkInterfaces') or []
    for interface in interfaces:
        if interface.get('Attachment', {}).get('DeviceIndex') == 0:
            return interface
    return interfaces[0] if interfaces else {}


def select_instance_address(instance: Dict[str, Any], is_private: bool, uses_dns_names: bool) -> Optional[str]:
    """Pick the private/public IP or DNS name of the instance's primary interface."""
    interface = _primary_interface(instance)

    if is_private:
        addresses = interface.get('PrivateIpAddresses') or [{}]
        primary = next((a for a in addresses if a.get('Primary')), addresses[0])
        if uses_dns_names:
            return primary.get('PrivateDnsName') or interface.get('PrivateDnsName') or instance.get('PrivateDnsName')
        return primary.get('PrivateIpAddress') or interface.get('PrivateIpAddress') or instance.get('PrivateIpAddress')

    association = interface.get('Association') or {}
    if uses_dns_names:
        return association.get('PublicDnsName') or instance.get('PublicDnsName')
    return association.get('PublicIp') or instance.get('PublicIpAddress')


def describe_instance(ec2, instance_id: str, zone_id: str) -> Dict[str, Any]:
    try:
        response = ec2.describe_instances(InstanceIds=[instance_id])
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        if error_code == "InvalidInstanceID.NotFound":
            raise ZonePipelineError(f"Instance {instance_id} not found.", zone_id=zone_id,
                                    cause="instance_not_found") from e
        raise
    logger.debug(f"describe_instances {instance_id}: {json.dumps(response, default=str)}")

    for reservation in response.get('Reservations', []):
        for instance in reservation.get('Instances', []):
            return instance
    raise ZonePipelineError(f"Instance {instance_id} not found: no reservations returned.", zone_id=zone_id,
                            cause="instance_not_found")


def _unescape_name(name: str) -> str:
    # Route53 lists special characters such as '*' as octal escapes ('\052')
    return re.sub(r"\\([0-7]{3})", lambda m: chr(int(m.group(1), 8)), name)


def _same_name(left: str, right: str) -> bool:
    return _unescape_name(left).rstrip('.').lower() == _unescape_name(right).rstrip('.').lower()


def find_existing_record(route53, spec: ZoneRecordSpec, instance_id: str) -> Dict[str, Any]:
    """Return the record set this instance owns in the zone."""
    response = route53.list_resource_record_sets(
        HostedZoneId=spec.zone_id,
        StartRecordName=spec.record_name,
        StartRecordType=spec.record_type,
        StartRecordIdentifier=instance_id,
        MaxItems='1'
    )
    logger.debug(f"list_resource_record_sets {spec.zone_id}: {json.dumps(response, default=str)}")

    for record_set in response.get('ResourceRecordSets', []):
        if (_same_name(record_set.get('Name', ''), spec.record_name)
                and record_set.get('Type') == spec.record_type
                and record_set.get('SetIdentifier') == instance_id
                and record_set.get('ResourceRecords')):
            return record_set
    raise ZonePipelineError(
        f"No {spec.record_type} record '{spec.record_name}' with identifier {instance_id} "
        f"in zone {spec.zone_id}; nothing to delete.",
        zone_id=spec.zone_id, cause="record_not_found")


def build_launch_mutation(ec2, spec: ZoneRecordSpec, event: LifecycleEvent) -> MutationBatch:
    instance = describe_instance(ec2, event.instance_id, spec.zone_id)
    value = select_instance_address(instance, spec.is_private, spec.uses_dns_names)
    if not value:
        kind = "private" if spec.is_private else "public"
        field = "DNS name" if spec.uses_dns_names else "IP address"
        raise ZonePipelineError(
            f"Instance {event.instance_id} has no {kind} {field} for zone {spec.zone_id} ('{spec.zone_name}').",
            zone_id=spec.zone_id, cause="address_missing")

    return MutationBatch(
        zone_id=spec.zone_id,
        action=UPSERT,
        record_name=spec.record_name,
        record_type=spec.record_type,
        set_identifier=event.instance_id,
        weight=DNS_WEIGHT,
        ttl=spec.ttl,
        value=value,
    )


def build_terminate_mutation(route53, spec: ZoneRecordSpec, event: LifecycleEvent) -> MutationBatch:
    record_set = find_existing_record(route53, spec, event.instance_id)

    # DELETE must match the existing record exactly
    return MutationBatch(
        zone_id=spec.zone_id,
        action=DELETE,
        record_name=spec.record_name,
        record_type=spec.record_type,
        set_identifier=event.instance_id,
        weight=record_set.get('Weight', DNS_WEIGHT),
        ttl=record_set.get('TTL', spec.ttl),
        value=record_set['ResourceRecords'][0]['Value'],
    )


def build_mutation(clients, spec: ZoneRecordSpec, event: LifecycleEvent) -> MutationBatch:
    if not spec.resolved:
        raise ValueError(f"Zone {spec.zone_id} has not been resolved.")
    if event.kind is EventKind.LAUNCH:
        return build_launch_mutation(clients.ec2, spec, event)
    return build_terminate_mutation(clients.route53, spec, event)

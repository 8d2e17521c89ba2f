import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import default_clients
from .config import AWS_REGION, LOG_LEVEL, MAX_ZONE_WORKERS, TAG_NAME
from .errors import TagDecodeError, ZonePipelineError
from .models import EventKind, LifecycleEvent
from .records import build_mutation
from .tag_parser import decode_tag_value, describe_specs, fetch_tag_value
from .zones import resolve_zone

# Initialize logger
logger = logging.getLogger()
logger.setLevel(LOG_LEVEL) # Set LOG_LEVEL=DEBUG for full AWS responses


def lambda_handler(event, context):
    function_name = getattr(context, 'function_name', None)
    function_version = getattr(context, 'function_version', None)
    logger.info(f"Function: {function_name} version: {function_version} AWS_REGION: {AWS_REGION} "
                f"Received event: {json.dumps(event, default=str)}")

    try:
        lifecycle_event = parse_notification(event)
    except ValueError as e:
        logger.error(f"Validation Error: {e} Event: {json.dumps(event, default=str)}")
        return _response(400, {"status": "error", "message": str(e)})

    if lifecycle_event is None:
        return _response(200, {"status": "ignored", "message": "Notification is not an instance launch or terminate event."})

    try:
        return process_event(lifecycle_event, default_clients())
    except Exception as e:
        logger.critical(f"Unhandled critical exception in lambda_handler: {str(e)}", exc_info=True)
        return _response(500, {
            "status": "error",
            "message": f"An unexpected error occurred during execution: {str(e)}",
            "group_name": lifecycle_event.group_name,
            "instance_id": lifecycle_event.instance_id
        })


def parse_notification(event):
    """Extract the LifecycleEvent from an SNS-wrapped Auto Scaling notification.

    Returns None for notifications we don't act on (test notifications,
    launch/terminate errors, ...).
    """
    message = event
    records = event.get('Records') if isinstance(event, dict) else None
    if records:
        raw_message = records[0].get('Sns', {}).get('Message')
        if raw_message is None:
            raise ValueError("SNS record carries no 'Message'.")
        try:
            message = json.loads(raw_message)
        except ValueError as e:
            raise ValueError(f"SNS message is not valid JSON: {e}") from e

    if not isinstance(message, dict):
        raise ValueError("Auto Scaling notification must be a JSON object.")

    event_name = message.get('Event')
    kind = EventKind.from_event_name(event_name)
    if kind is None:
        logger.info(f"Ignoring message: {event_name} for AutoScalingGroupName: {message.get('AutoScalingGroupName')}")
        return None

    group_name = message.get('AutoScalingGroupName')
    instance_id = message.get('EC2InstanceId')
    if not group_name or not instance_id:
        raise ValueError(f"Missing 'AutoScalingGroupName' or 'EC2InstanceId' in {event_name} notification.")

    return LifecycleEvent(group_name=group_name, instance_id=instance_id, kind=kind, cause=message.get('Cause', ''))


def process_event(lifecycle_event, clients, tag_name=TAG_NAME):
    group_name = lifecycle_event.group_name
    logger.info(f"Processing {lifecycle_event.kind.name} of instance '{lifecycle_event.instance_id}' "
                f"for ASG '{group_name}'. Cause: {lifecycle_event.cause}")

    try:
        tag_value = fetch_tag_value(clients.autoscaling, group_name, tag_name)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        error_message = e.response.get("Error", {}).get("Message")
        logger.error(f"AWS API Error describing tags of ASG {group_name}: [{error_code}] {error_message}", exc_info=True)
        return _response(500, {
            "status": "error",
            "message": f"Failed to read tag '{tag_name}' of ASG {group_name}: {error_message}",
            "group_name": group_name
        })

    try:
        decoded = decode_tag_value(tag_value, group_name, tag_name)
    except TagDecodeError as e:
        logger.error(f"Tag decode failed ({e.cause}): {e}")
        return _response(400, {
            "status": "error",
            "message": str(e),
            "cause": e.cause,
            "group_name": group_name,
            "tag_value": tag_value
        })

    if decoded is None:
        msg = f"Ignoring message. ASG: {group_name} does not define tag: '{tag_name}' or tag value is empty or 'none'."
        logger.warning(msg)
        return _response(200, {"status": "ignored", "message": msg, "group_name": group_name})

    logger.info(f"Updating {decoded.zone_count} zone(s) for ASG '{group_name}': {describe_specs(decoded.specs)}")

    update_results = []
    with ThreadPoolExecutor(max_workers=min(decoded.zone_count, MAX_ZONE_WORKERS)) as pool:
        futures = {pool.submit(run_zone_pipeline, clients, spec, lifecycle_event): spec for spec in decoded.specs}
        for future in as_completed(futures):
            try:
                update_results.append(future.result())
            except Exception as e:
                spec = futures[future]
                logger.error(f"Unexpected error for ASG: {group_name} zone: {spec.zone_id}: {str(e)}", exc_info=True)
                update_results.append({
                    "zone_id": spec.zone_id,
                    "record_name": spec.record_name,
                    "status": "error",
                    "error_message": f"Unexpected error: {str(e)}"
                })

    failed = [result for result in update_results if result.get('status') == 'error']
    if not failed:
        status, status_code = "success", 200
        message = "DNS update process completed successfully."
    elif len(failed) < len(update_results):
        status, status_code = "partial_success_with_errors", 200
        message = "Some DNS updates failed. Check 'updates' for details."
    else:
        status, status_code = "error", 500
        message = "All DNS updates failed. Check 'updates' for details."

    logger.info(f"Function execution completed with status: {status}")
    return _response(status_code, {
        "status": status,
        "message": message,
        "group_name": group_name,
        "instance_id": lifecycle_event.instance_id,
        "event": lifecycle_event.kind.value,
        "updates": update_results
    })


def run_zone_pipeline(clients, spec, lifecycle_event):
    """Resolve the zone, build its change and submit it. Never raises."""
    result = {
        "zone_id": spec.zone_id,
        "record_name": spec.record_name,
        "record_type": spec.record_type,
    }
    try:
        spec = resolve_zone(clients.route53, spec)
        result.update(zone_name=spec.zone_name, record_name=spec.record_name)
        batch = build_mutation(clients, spec, lifecycle_event)
    except ZonePipelineError as e:
        logger.error(f"ASG: {lifecycle_event.group_name} zone: {e.zone_id} failed ({e.cause}): {e}")
        result.update(status="error", cause=e.cause, error_message=str(e))
        return result
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        error_message = e.response.get("Error", {}).get("Message")
        logger.error(f"AWS API Error for ASG: {lifecycle_event.group_name} zone: {spec.zone_id}: "
                     f"[{error_code}] {error_message}", exc_info=True)
        result.update(status="error", error_code=error_code, error_message=error_message)
        return result
    except (BotoCoreError, ValueError) as e:
        logger.error(f"Error for ASG: {lifecycle_event.group_name} zone: {spec.zone_id}: {str(e)}", exc_info=True)
        result.update(status="error", error_message=str(e))
        return result

    result.update(submit_mutation(clients.route53, batch, spec.zone_name))
    return result


### Helper Functions ###

def submit_mutation(route53, batch, zone_name=""):
    # Applies one UPSERT/DELETE of a weighted, instance-identified record.

    logger.info(f"Attempting {batch.action} for DNS record: {batch.record_name} (Type: {batch.record_type}, "
                f"TTL: {batch.ttl}, SetIdentifier: {batch.set_identifier}) value: {batch.value} "
                f"in Hosted Zone: {batch.zone_id} ('{zone_name}')")
    try:
        response = route53.change_resource_record_sets(**batch.to_change_batch())
        change_info = response.get("ChangeInfo", {})
        logger.info(f"SUCCESS: {batch.action} of {batch.record_name} -> {batch.value} in zone {batch.zone_id}. "
                    f"Status: {change_info.get('Status')} Change ID: {change_info.get('Id')}")
        logger.debug(f"Route53 Change Info: {json.dumps(change_info, default=str)}")

        return {
            "action": batch.action,
            "value": batch.value,
            "change_info": change_info,
            "status": "success"
        }

    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code")
        error_message = e.response.get("Error", {}).get("Message")
        error_msg = f"AWS API Error on {batch.action} of {batch.record_name} in zone {batch.zone_id}: [{error_code}] {error_message}"
        logger.error(error_msg, exc_info=True)
        return {
            "action": batch.action,
            "value": batch.value,
            "status": "error",
            "error_code": error_code,
            "error_message": error_message
        }
    except BotoCoreError as e:
        error_msg = f"Unexpected error on {batch.action} of {batch.record_name} in zone {batch.zone_id}: {str(e)}"
        logger.error(error_msg, exc_info=True)
        return {
            "action": batch.action,
            "value": batch.value,
            "status": "error",
            "error_message": error_msg
        }


def _response(status_code, body):
    return {
        "statusCode": status_code,
        "body": json.dumps(body, default=str)
    }

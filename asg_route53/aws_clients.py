"""aws_clients.py: Lazy-singleton boto3 clients.

Clients are created on first use and cached for the lifetime of the Lambda
container. Retries are disabled: a failed call is terminal for the zone that
made it and re-delivery is left to SNS.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import boto3
from botocore.config import Config

from .config import AWS_REGION

_NO_RETRY = Config(retries={"max_attempts": 1, "mode": "standard"})

_route53 = None
_autoscaling = None
_ec2 = None


def get_route53():
    """Get (or create) the Route53 client singleton. Route53 is a global service."""
    global _route53
    if _route53 is None:
        _route53 = boto3.client("route53", config=_NO_RETRY)
    return _route53


def get_autoscaling():
    """Get (or create) the Auto Scaling client singleton."""
    global _autoscaling
    if _autoscaling is None:
        _autoscaling = boto3.client("autoscaling", region_name=AWS_REGION, config=_NO_RETRY)
    return _autoscaling


def get_ec2():
    """Get (or create) the EC2 client singleton."""
    global _ec2
    if _ec2 is None:
        _ec2 = boto3.client("ec2", region_name=AWS_REGION, config=_NO_RETRY)
    return _ec2


def reset_clients() -> None:
    global _route53, _autoscaling, _ec2
    _route53 = None
    _autoscaling = None
    _ec2 = None


@dataclass(frozen=True)
class AwsClients:
    route53: Any
    autoscaling: Any
    ec2: Any


def default_clients() -> AwsClients:
    return AwsClients(route53=get_route53(), autoscaling=get_autoscaling(), ec2=get_ec2())

"""asg_route53: keep Route53 records in step with Auto Scaling instances.

The Auto Scaling group carries a ``Route53`` tag describing which hosted
zones to update and how. On EC2_INSTANCE_LAUNCH a weighted record pointing at
the new instance is UPSERTed into every zone; on EC2_INSTANCE_TERMINATE the
instance's record is DELETEd.
"""

__version__ = "1.0.0"

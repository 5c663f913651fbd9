"""Report the game server instance's state. Public, read-only."""

from __future__ import annotations

from typing import Any, Dict

from ._common import InstanceCallback, invoke


class StatusHandler(InstanceCallback):
    """Calls ec2:DescribeInstanceStatus for the instance.

    IncludeAllInstances is set so stopped instances are listed too;
    without it EC2 only returns running ones.
    """

    action = "status"
    list_key = "InstanceStatuses"
    state_key = "InstanceState"

    def call(self, client: Any) -> Dict[str, Any]:
        return client.describe_instance_status(
            InstanceIds=[self.instance_id],
            IncludeAllInstances=True,
        )


def handler(event, context):
    return invoke(StatusHandler, event, context)

"""Start the game server instance."""

from __future__ import annotations

from typing import Any, Dict

from ._common import InstanceCallback, invoke


class StartHandler(InstanceCallback):
    """Calls ec2:StartInstances and reports the instance's new state."""

    action = "start"
    list_key = "StartingInstances"

    def call(self, client: Any) -> Dict[str, Any]:
        return client.start_instances(InstanceIds=[self.instance_id])


def handler(event, context):
    return invoke(StartHandler, event, context)

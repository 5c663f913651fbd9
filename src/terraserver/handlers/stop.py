"""Stop the game server instance."""

from __future__ import annotations

from typing import Any, Dict

from ._common import InstanceCallback, invoke


class StopHandler(InstanceCallback):
    """Calls ec2:StopInstances and reports the instance's new state.

    An instance that is already stopped may be left out of
    ``StoppingInstances``; that surfaces as a 404.
    """

    action = "stop"
    list_key = "StoppingInstances"

    def call(self, client: Any) -> Dict[str, Any]:
        return client.stop_instances(InstanceIds=[self.instance_id])


def handler(event, context):
    return invoke(StopHandler, event, context)

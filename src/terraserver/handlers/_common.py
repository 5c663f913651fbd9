"""Shared plumbing for the instance callback Lambdas.

Kept free of anything beyond boto3 and the standard library, since the
Lambda runtime ships only those.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Callable, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

NOT_FOUND = "not found"
ERROR = "error"

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}


def response(status_code: int, result: str) -> Dict[str, Any]:
    """Build an API Gateway proxy result with a ``{"result": ...}`` body."""
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": json.dumps({"result": result}),
        "isBase64Encoded": False,
    }


def ec2_client(region: Optional[str] = None) -> Any:
    """Create a boto3 EC2 client for the Lambda's region."""
    import boto3

    region = region or os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION")
    return boto3.client("ec2", region_name=region)


def find_state(
    entries: Iterable[Dict[str, Any]], instance_id: str, state_key: str,
) -> Optional[str]:
    """Pull the state name for ``instance_id`` out of an EC2 response list.

    Args:
        entries: e.g. ``StoppingInstances`` or ``InstanceStatuses``.
        instance_id: The instance to look for.
        state_key: ``CurrentState`` for start/stop, ``InstanceState`` for status.

    Returns:
        The state name, or None if the instance is not listed.
    """
    for entry in entries or ():
        if entry.get("InstanceId") == instance_id:
            return (entry.get(state_key) or {}).get("Name") or None
    return None


class InstanceCallback:
    """One control-plane call against one instance, shaped into HTTP.

    Subclasses name the EC2 call and where the state lives in its reply.
    Each invocation makes exactly one call; there are no retries.

    Args:
        instance_id: The instance every invocation targets.
        client_factory: Returns a boto3 EC2 client. Defaults to ec2_client.
    """

    action = ""
    list_key = ""
    state_key = "CurrentState"

    def __init__(
        self,
        instance_id: str,
        client_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        if not instance_id:
            raise ValueError(f"{type(self).__name__} needs an instance id")
        self.instance_id = instance_id
        self._client_factory = client_factory or ec2_client

    @classmethod
    def from_env(cls, client_factory: Optional[Callable[[], Any]] = None) -> "InstanceCallback":
        """Build from the INSTANCE_ID variable set at provisioning time."""
        return cls(os.environ.get("INSTANCE_ID", ""), client_factory=client_factory)

    def call(self, client: Any) -> Dict[str, Any]:
        raise NotImplementedError

    def __call__(self, event: Any = None, context: Any = None) -> Dict[str, Any]:
        try:
            reply = self.call(self._client_factory())
            state = find_state(reply.get(self.list_key, []), self.instance_id, self.state_key)
        except Exception as exc:
            logger.error("%s %s failed: %s", self.action, self.instance_id, exc)
            return response(500, ERROR)

        if state is None:
            return response(404, NOT_FOUND)
        return response(200, state)


def invoke(callback_cls, event: Any, context: Any) -> Dict[str, Any]:
    """Lambda entry: build the callback from the environment and run it.

    A missing INSTANCE_ID still yields a shaped 500, so the caller keeps
    the CORS header instead of getting a bare gateway error.
    """
    try:
        callback = callback_cls.from_env()
    except ValueError as exc:
        logger.error("%s not configured: %s", callback_cls.action, exc)
        return response(500, ERROR)
    return callback(event, context)

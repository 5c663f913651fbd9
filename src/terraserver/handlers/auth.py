"""
Password authorizer for the start and stop routes.

API Gateway calls this as a REQUEST authorizer with the caller's headers.
The ``Authorization`` header must equal the provisioned password exactly;
anything else, including no header at all, is denied. Results are never
cached by the gateway, so every request is checked.
"""

from __future__ import annotations

import hmac
import os
from typing import Any, Dict, Mapping, Optional

ALLOW = "Allow"
DENY = "Deny"

HEADER = "Authorization"


def _header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    # Header casing depends on the client; API Gateway passes it through.
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def policy(effect: str, resource: str, principal_id: str = "user") -> Dict[str, Any]:
    """Build the IAM policy document API Gateway expects back."""
    return {
        "principalId": principal_id,
        "policyDocument": {
            "Version": "2012-10-17",
            "Statement": [
                {
                    "Action": "execute-api:Invoke",
                    "Effect": effect,
                    "Resource": resource,
                }
            ],
        },
    }


class PasswordAuthorizer:
    """Allow a request iff its Authorization header matches the password.

    Args:
        password: The shared secret. An empty password denies everything.
    """

    def __init__(self, password: str) -> None:
        self._password = password or ""

    @classmethod
    def from_env(cls) -> "PasswordAuthorizer":
        return cls(os.environ.get("PASSWORD", ""))

    def decide(self, presented: Optional[str]) -> str:
        """Return ALLOW or DENY for a presented header value."""
        if not self._password or not presented or not isinstance(presented, str):
            return DENY
        if hmac.compare_digest(presented.encode("utf-8"), self._password.encode("utf-8")):
            return ALLOW
        return DENY

    def __call__(self, event: Mapping[str, Any], context: Any = None) -> Dict[str, Any]:
        presented = _header(event.get("headers"), HEADER)
        return policy(self.decide(presented), event.get("methodArn", "*"))


def handler(event, context):
    return PasswordAuthorizer.from_env()(event, context)

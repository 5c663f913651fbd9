"""
Pydantic models for the server deployment and the states it reports.

Nothing here is cached state: the instance state always comes from EC2.
These models describe what gets provisioned and how the CLI reads replies.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class InstanceState(str, Enum):
    """EC2 instance lifecycle states, as named by the control plane."""

    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ServerConfig(BaseModel):
    """Everything the provisioning layer needs to build the deployment."""

    app_name: str = "Terraria"
    region: str = "us-west-2"
    instance_id: Optional[str] = Field(
        default=None,
        description="Existing instance to target. When unset, the stack's own instance is used.",
    )
    instance_type: str = "t3.small"
    key_name: str = "ec2-key-pair"
    game_port: int = 7777
    admin_port: int = 22
    image: str = "ryshe/terraria:latest"
    world_name: str = "world1"
    autocreate: int = Field(default=3, ge=1, le=3)
    log_max_size: str = "200m"

    @field_validator("game_port", "admin_port")
    @classmethod
    def _valid_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError(f"port out of range: {v}")
        return v

    @field_validator("app_name")
    @classmethod
    def _alnum_app_name(cls, v: str) -> str:
        # Used as a prefix for construct ids and Lambda function names.
        if not v or not v.isalnum():
            raise ValueError("app_name must be non-empty and alphanumeric")
        return v


class ApiResult(BaseModel):
    """Decoded reply from one of the control routes."""

    status_code: int
    result: str

    @property
    def ok(self) -> bool:
        return self.status_code == 200

"""
Bootstrap commands for the game server instance.

Runs once at first boot (and again whenever the user data changes, since
the instance is replaced). Installs Docker, then runs the server image with
the world directory bind-mounted from the host so worlds survive container
restarts.
"""

from __future__ import annotations

import shlex
from typing import List

from ..models import ServerConfig

# Where the ryshe/terraria image keeps worlds inside the container.
CONTAINER_WORLD_DIR = "/root/.local/share/Terraria/Worlds"
# Absolute: cloud-init runs user data as root, where $HOME may be unset.
HOST_WORLD_DIR = "/home/ec2-user/terraria/world"


def docker_commands() -> List[str]:
    """Install and start Docker on Amazon Linux 2."""
    return [
        "sudo yum update -y",
        "sudo amazon-linux-extras install -y docker",
        "sudo service docker start",
        "sudo usermod -a -G docker ec2-user",
    ]


def server_commands(config: ServerConfig) -> List[str]:
    """Create the world directory and launch the server container.

    Args:
        config: Ports, image, world name and log settings.

    Returns:
        Shell commands, in order.
    """
    world_file = f"{CONTAINER_WORLD_DIR}/{config.world_name}.wld"
    run = " ".join([
        "sudo docker run -d --rm",
        f"-p {config.game_port}:7777",
        f"-p {config.game_port}:7777/udp",
        f"--log-opt max-size={shlex.quote(config.log_max_size)}",
        f"-v {HOST_WORLD_DIR}:{CONTAINER_WORLD_DIR}",
        shlex.quote(config.image),
        f"-world {shlex.quote(world_file)}",
        f"-autocreate {config.autocreate}",
    ])
    return [f"mkdir -p {HOST_WORLD_DIR}", run]


def bootstrap_commands(config: ServerConfig) -> List[str]:
    """Full boot script for the instance: Docker first, then the server."""
    return docker_commands() + server_commands(config)

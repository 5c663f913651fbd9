"""
terraserver — a Terraria server on AWS you can switch on and off over HTTP.

One EC2 instance runs the game in Docker. Three Lambda callbacks behind
API Gateway start it, stop it, and report its state. Start and stop sit
behind a password authorizer; status is public.
"""

import os

__version__ = "0.1.0"

TERRASERVER_HOME = os.environ.get("TERRASERVER_HOME", "~/.terraserver")

"""
Provisioning — the CDK description of the server deployment.

``user_data`` is plain Python; ``stack`` needs aws-cdk-lib.
"""

from .user_data import bootstrap_commands

__all__ = ["bootstrap_commands"]

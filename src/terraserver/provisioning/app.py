"""CDK app entry point (``cdk.json`` runs this module)."""

from __future__ import annotations

import os

from ..config import load_config, resolve_password
from .stack import synth


def main() -> None:
    config = load_config()
    synth(
        config,
        resolve_password(),
        outdir=os.environ.get("CDK_OUTDIR"),
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
    )


if __name__ == "__main__":
    main()

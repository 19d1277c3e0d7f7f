"""Version information for the running service."""

import uuid
from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "aws-ip-lookup"


def get_local_version() -> str:
    """Return the installed distribution version."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return "0.0.0+unknown"


def new_instance_id() -> str:
    """Generate an identifier for this process; call once at startup."""
    return str(uuid.uuid4())

# src/claimcheck/plugins/oci/auth.py
"""OCI SDK configuration loading.

Credentials come from an OCI config file (``~/.oci/config`` by default) and
a named profile, the same way the OCI CLI resolves them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import oci

from claimcheck.core.logging import get_logger

logger = get_logger(__name__)


class OciConfigError(Exception):
    """Raised when the OCI config file is missing or invalid."""

    pass


def load_oci_config(config_file: str, profile: str) -> dict[str, Any]:
    """Parse and validate an OCI config profile.

    Raises:
        OciConfigError: If the file or profile is missing, or required keys are invalid
    """
    location = str(Path(config_file).expanduser())
    try:
        config: dict[str, Any] = oci.config.from_file(file_location=location, profile_name=profile)
        oci.config.validate_config(config)
    except (oci.exceptions.ConfigFileNotFound, oci.exceptions.ProfileNotFound, oci.exceptions.InvalidConfig) as e:
        raise OciConfigError(f"Cannot load OCI profile {profile!r} from {location}: {e}") from e

    logger.debug("Loaded OCI config", config_file=location, profile=profile, region=config.get("region"))
    return config


def client_timeout(timeout_seconds: float) -> tuple[float, float]:
    """(connect, read) timeout tuple accepted by OCI clients."""
    return (timeout_seconds, timeout_seconds)

"""Oracle Cloud Infrastructure gateway pack for claimcheck.

Provides gateways for OCI Object Storage and OCI Streaming, authenticated
from an OCI config file profile.

Gateways are built from settings by claimcheck.cli_helpers, not imported here.
"""

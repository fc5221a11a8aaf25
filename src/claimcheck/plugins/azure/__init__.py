"""Azure gateway pack for claimcheck.

Provides an object-store gateway for Azure Blob Storage. The storage
account name plays the role of the namespace. Supports multiple
authentication methods:
- Connection string
- SAS token
- Managed Identity (for Azure-hosted workloads)
- Service Principal (for automated/CI scenarios)

Gateways are built from settings by claimcheck.cli_helpers, not imported here.
"""

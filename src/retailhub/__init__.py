"""RetailHub: multi-tenant retail back office provisioning and bulk imports."""

from retailhub.imports.base import ImportPipeline, read_rows
from retailhub.imports.importers import get_importer
from retailhub.provisioning.service import TenantProvisioner

__all__ = [
    "ImportPipeline",
    "TenantProvisioner",
    "get_importer",
    "read_rows",
]
__version__ = "0.1.0"

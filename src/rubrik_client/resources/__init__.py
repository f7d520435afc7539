"""Resource-specific convenience wrappers."""
from .archive import ArchiveResource
from .aws import AWSAccountsResource
from .cluster import ClusterResource
from .data_management import DataManagementResource
from .vmware import VMwareResource

__all__ = [
    "ClusterResource",
    "ArchiveResource",
    "AWSAccountsResource",
    "VMwareResource",
    "DataManagementResource",
]

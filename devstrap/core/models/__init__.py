"""
Domain models — Pydantic types for devstrap.

All models are re-exported here for convenient access:

    from devstrap.core.models import MutationRequest, MutationResult, BackupRecord
"""

from devstrap.core.models.backup import BackupRecord
from devstrap.core.models.mutation import MutationRequest, MutationResult, ResourceKind
from devstrap.core.models.settings import (
    BootstrapSettings,
    DotfileLink,
    SshSettings,
)

__all__ = [
    # backup.py
    "BackupRecord",
    # settings.py
    "BootstrapSettings",
    "DotfileLink",
    # mutation.py
    "MutationRequest",
    "MutationResult",
    "ResourceKind",
    "SshSettings",
]

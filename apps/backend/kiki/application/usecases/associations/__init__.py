"""
Association use cases (public exports).

Lifecycle (create / approve / reject / deactivate / list), family shares and
active-association resolution.
"""

from __future__ import annotations

from .active_association import (
    CleanupInvalidActiveAssociationsUseCase,
    ClearActiveAssociationUseCase,
    GetActiveAssociationUseCase,
    ListAvailableAssociationsUseCase,
    SetActiveAssociationUseCase,
)
from .approve_association import ApproveAssociationUseCase
from .association_results import (
    ActiveAssociationResult,
    AssociationError,
    AssociationErrorCode,
    AssociationListResult,
    AssociationResult,
    ShareResult,
)
from .create_association import (
    CreateAssociationInput,
    CreateAssociationUseCase,
    create_live_association,
    validate_association_target,
)
from .deactivate_association import (
    DeactivateAssociationUseCase,
    RejectAssociationUseCase,
)
from .list_associations import ListAccountAssociationsUseCase
from .request_share import (
    RequestShareInput,
    RequestShareUseCase,
    consume_requested_shares,
)

__all__ = [
    "ActiveAssociationResult",
    "ApproveAssociationUseCase",
    "AssociationError",
    "AssociationErrorCode",
    "AssociationListResult",
    "AssociationResult",
    "CleanupInvalidActiveAssociationsUseCase",
    "ClearActiveAssociationUseCase",
    "CreateAssociationInput",
    "CreateAssociationUseCase",
    "DeactivateAssociationUseCase",
    "GetActiveAssociationUseCase",
    "ListAccountAssociationsUseCase",
    "ListAvailableAssociationsUseCase",
    "RejectAssociationUseCase",
    "RequestShareInput",
    "RequestShareUseCase",
    "SetActiveAssociationUseCase",
    "ShareResult",
    "consume_requested_shares",
    "create_live_association",
    "validate_association_target",
]

"""
In-Memory Repository Implementations.

For testing and local development. NOT FOR PRODUCTION.
Data is lost on process restart.
"""

from .accounts import InMemoryAccountRepository
from .active_associations import InMemoryActiveAssociationRepository
from .associations import InMemoryAssociationRepository
from .divisions import InMemoryDivisionRepository
from .onboarding import InMemoryTenantOnboardingRepository
from .refresh_tokens import InMemoryRefreshTokenRepository
from .requested_shares import InMemoryRequestedShareRepository
from .roles import InMemoryRoleRepository
from .students import InMemoryStudentRepository
from .users import InMemoryUserRepository

__all__ = [
    "InMemoryAccountRepository",
    "InMemoryActiveAssociationRepository",
    "InMemoryAssociationRepository",
    "InMemoryDivisionRepository",
    "InMemoryRefreshTokenRepository",
    "InMemoryRequestedShareRepository",
    "InMemoryRoleRepository",
    "InMemoryStudentRepository",
    "InMemoryTenantOnboardingRepository",
    "InMemoryUserRepository",
]

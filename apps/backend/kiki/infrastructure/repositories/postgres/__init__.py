"""
PostgreSQL repository implementations (raw parameterized SQL over psycopg 3).
"""

from .accounts import PostgresAccountRepository
from .active_associations import PostgresActiveAssociationRepository
from .associations import PostgresAssociationRepository
from .divisions import PostgresDivisionRepository
from .onboarding import PostgresTenantOnboardingRepository
from .refresh_tokens import PostgresRefreshTokenRepository
from .requested_shares import PostgresRequestedShareRepository
from .roles import PostgresRoleRepository
from .students import PostgresStudentRepository
from .users import PostgresUserRepository

__all__ = [
    "PostgresAccountRepository",
    "PostgresActiveAssociationRepository",
    "PostgresAssociationRepository",
    "PostgresDivisionRepository",
    "PostgresRefreshTokenRepository",
    "PostgresRequestedShareRepository",
    "PostgresRoleRepository",
    "PostgresStudentRepository",
    "PostgresTenantOnboardingRepository",
    "PostgresUserRepository",
]

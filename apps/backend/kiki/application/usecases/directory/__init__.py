"""
Directory use cases (accounts, divisions, students, users, roles).
"""

from __future__ import annotations

from .accounts import (
    CreateAccountInput,
    CreateAccountUseCase,
    DeactivateAccountUseCase,
    GetAccountUseCase,
    ListAccountsUseCase,
    UpdateAccountInput,
    UpdateAccountUseCase,
)
from .directory_results import (
    AccountListResult,
    AccountResult,
    DirectoryError,
    DirectoryErrorCode,
    DivisionListResult,
    DivisionResult,
    RoleListResult,
    RoleResult,
    StudentListResult,
    StudentResult,
    UserListResult,
    UserResult,
)
from .divisions import (
    CreateDivisionInput,
    CreateDivisionUseCase,
    GetDivisionUseCase,
    ListDivisionsUseCase,
    ManageDivisionMembersUseCase,
    UpdateDivisionInput,
    UpdateDivisionUseCase,
)
from .roles import GetRoleUseCase, ListRolesUseCase, UpdateRolePermissionsUseCase
from .students import (
    CreateStudentInput,
    CreateStudentUseCase,
    GetStudentUseCase,
    ListStudentsUseCase,
    UpdateStudentInput,
    UpdateStudentUseCase,
)
from .users import (
    ChangeUserStatusUseCase,
    GetUserUseCase,
    ListUsersUseCase,
    ProvisionUserInput,
    ProvisionUserUseCase,
    UpdateProfileInput,
    UpdateProfileUseCase,
)

__all__ = [
    "AccountListResult",
    "AccountResult",
    "ChangeUserStatusUseCase",
    "CreateAccountInput",
    "CreateAccountUseCase",
    "CreateDivisionInput",
    "CreateDivisionUseCase",
    "CreateStudentInput",
    "CreateStudentUseCase",
    "DeactivateAccountUseCase",
    "DirectoryError",
    "DirectoryErrorCode",
    "DivisionListResult",
    "DivisionResult",
    "GetAccountUseCase",
    "GetDivisionUseCase",
    "GetRoleUseCase",
    "GetStudentUseCase",
    "GetUserUseCase",
    "ListAccountsUseCase",
    "ListDivisionsUseCase",
    "ListRolesUseCase",
    "ListStudentsUseCase",
    "ListUsersUseCase",
    "ManageDivisionMembersUseCase",
    "ProvisionUserInput",
    "ProvisionUserUseCase",
    "RoleListResult",
    "RoleResult",
    "StudentListResult",
    "StudentResult",
    "UpdateAccountInput",
    "UpdateAccountUseCase",
    "UpdateDivisionInput",
    "UpdateDivisionUseCase",
    "UpdateProfileInput",
    "UpdateProfileUseCase",
    "UpdateRolePermissionsUseCase",
    "UpdateStudentInput",
    "UpdateStudentUseCase",
    "UserListResult",
    "UserResult",
]

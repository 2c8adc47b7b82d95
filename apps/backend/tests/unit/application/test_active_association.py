"""
Name: Active Association Resolution Tests

Responsibilities:
  - set: ownership, status and upsert (last write wins)
  - get/resolve: lazy revalidation removes stale pointers
  - available: only active associations are offered
  - clear and full cleanup sweep
"""

from dataclasses import replace
from uuid import uuid4

import pytest
from kiki.application.usecases.associations import (
    AssociationErrorCode,
    CleanupInvalidActiveAssociationsUseCase,
    ClearActiveAssociationUseCase,
    GetActiveAssociationUseCase,
    ListAvailableAssociationsUseCase,
    SetActiveAssociationUseCase,
)
from kiki.domain.entities import ActiveAssociation, AssociationStatus
from kiki.domain.roles import RoleName

pytestmark = pytest.mark.unit


@pytest.fixture
def member(repos, tenant, user_factory, association_factory):
    """R: A user with one active and one pending association in the tenant."""
    user = repos.users.create_user(user_factory.create(account_id=tenant.account.id))
    active = repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYADMIN,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )
    pending = repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.COORDINADOR,
            division_id=tenant.division.id,
            status=AssociationStatus.PENDING,
        )
    )
    return user, active, pending


def test_set_active_association(repos, member):
    user, active, _ = member

    result = SetActiveAssociationUseCase(repos.associations, repos.active).execute(
        user.id, active.id
    )

    assert result.error is None
    assert result.active.association_id == active.id
    assert result.active.role_name == RoleName.FAMILYADMIN
    assert result.active.student_id == active.student_id
    assert repos.active.get_active(user.id) == result.active


def test_set_active_overwrites_previous_pointer(repos, tenant, member, association_factory):
    user, active, _ = member
    second = repos.associations.create_association(
        association_factory(
            user.id,
            tenant.account.id,
            role_name=RoleName.FAMILYVIEWER,
            division_id=tenant.division.id,
            student_id=tenant.student.id,
        )
    )
    use_case = SetActiveAssociationUseCase(repos.associations, repos.active)
    use_case.execute(user.id, active.id)

    use_case.execute(user.id, second.id)

    assert repos.active.get_active(user.id).association_id == second.id
    assert len(repos.active.list_all_active()) == 1


def test_set_active_rejects_pending(repos, member):
    user, _, pending = member

    result = SetActiveAssociationUseCase(repos.associations, repos.active).execute(
        user.id, pending.id
    )

    assert result.error.code == AssociationErrorCode.INVALID_STATE
    assert repos.active.get_active(user.id) is None


def test_set_active_rejects_foreign_association(repos, member):
    _, active, _ = member

    result = SetActiveAssociationUseCase(repos.associations, repos.active).execute(
        uuid4(), active.id
    )

    assert result.error.code == AssociationErrorCode.FORBIDDEN


def test_set_active_unknown_association(repos, member):
    user, _, _ = member

    result = SetActiveAssociationUseCase(repos.associations, repos.active).execute(
        user.id, uuid4()
    )

    assert result.error.code == AssociationErrorCode.NOT_FOUND


def test_get_active_none_when_not_set(repos, member):
    user, _, _ = member

    result = GetActiveAssociationUseCase(repos.associations, repos.active).execute(user.id)

    assert result.error is None
    assert result.active is None


def test_get_active_drops_pointer_to_deactivated_association(repos, member):
    user, active, _ = member
    repos.active.upsert_active(ActiveAssociation.from_association(active))
    repos.associations.update_association(
        replace(active, status=AssociationStatus.INACTIVE)
    )

    use_case = GetActiveAssociationUseCase(repos.associations, repos.active)

    result = use_case.execute(user.id)
    again = use_case.execute(user.id)

    assert result.active is None
    assert repos.active.get_active(user.id) is None
    assert again.error is None
    assert again.active is None


def test_get_active_drops_pointer_to_missing_association(repos, tenant, member):
    user, _, _ = member
    repos.active.upsert_active(
        ActiveAssociation(
            user_id=user.id,
            association_id=uuid4(),
            account_id=tenant.account.id,
            role_name=RoleName.FAMILYADMIN,
        )
    )

    resolved = GetActiveAssociationUseCase(repos.associations, repos.active).resolve(user.id)

    assert resolved is None
    assert repos.active.get_active(user.id) is None


def test_resolve_returns_pointer_and_association(repos, member):
    user, active, _ = member
    repos.active.upsert_active(ActiveAssociation.from_association(active))

    pointer, association = GetActiveAssociationUseCase(
        repos.associations, repos.active
    ).resolve(user.id)

    assert pointer.association_id == active.id
    assert association.id == active.id


def test_available_lists_only_active(repos, member):
    user, active, _ = member

    result = ListAvailableAssociationsUseCase(repos.associations).execute(user.id)

    assert [a.id for a in result.associations] == [active.id]


def test_clear_active_association(repos, member):
    user, active, _ = member
    repos.active.upsert_active(ActiveAssociation.from_association(active))
    use_case = ClearActiveAssociationUseCase(repos.active)

    assert use_case.execute(user.id) is True
    assert use_case.execute(user.id) is False


def test_cleanup_removes_only_invalid_pointers(repos, tenant, member, user_factory, association_factory):
    user, active, _ = member
    repos.active.upsert_active(ActiveAssociation.from_association(active))

    other = repos.users.create_user(user_factory.create())
    stale = repos.associations.create_association(
        association_factory(other.id, tenant.account.id)
    )
    repos.active.upsert_active(ActiveAssociation.from_association(stale))
    repos.associations.update_association(replace(stale, status=AssociationStatus.INACTIVE))

    removed = CleanupInvalidActiveAssociationsUseCase(
        repos.associations, repos.active
    ).execute()

    assert removed == 1
    assert repos.active.get_active(user.id) is not None
    assert repos.active.get_active(other.id) is None

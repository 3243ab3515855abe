"""Tests for the role-gate."""

from __future__ import annotations

import pytest

from apps.applications import gate
from apps.applications.exceptions import PermissionDenied
from apps.applications.models import Application
from apps.applications.statuses import ApplicationStatus as S
from apps.users.constants import UserRole


@pytest.mark.django_db
def test_admin_may_perform_any_legal_transition(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    application = application_factory(status=S.SUBMIT)

    for target in (S.NEED_MORE_INFO, S.RETURN, S.REJECTED, S.COMPLETED):
        assert gate.can_transition(admin, application, target)


@pytest.mark.django_db
def test_manager_scope_covers_own_and_assigned_applications(profile_factory, application_factory):
    manager = profile_factory(role=UserRole.MANAGER)
    own = application_factory(created_by=manager, status=S.SUBMIT)
    assigned = application_factory(status=S.SUBMIT, assigned_manager=manager)
    unrelated = application_factory(status=S.SUBMIT)

    assert gate.can_transition(manager, own, S.COMPLETED)
    assert gate.can_transition(manager, assigned, S.RETURN)
    assert not gate.can_transition(manager, unrelated, S.COMPLETED)


@pytest.mark.django_db
@pytest.mark.parametrize("role", [UserRole.USER, UserRole.PARTNER])
def test_applicants_may_only_submit_their_own_work(role, profile_factory, application_factory):
    applicant = profile_factory(role=role)
    draft = application_factory(created_by=applicant)
    need_info = application_factory(created_by=applicant, status=S.NEED_MORE_INFO)
    submitted = application_factory(created_by=applicant, status=S.SUBMIT)

    assert gate.can_transition(applicant, draft, S.SUBMIT)
    assert gate.can_transition(applicant, need_info, S.SUBMIT)
    assert not gate.can_transition(applicant, need_info, S.RETURN)
    assert not gate.can_transition(applicant, submitted, S.COMPLETED)


@pytest.mark.django_db
def test_non_owner_is_denied_regardless_of_legality(profile_factory, application_factory):
    stranger = profile_factory(role=UserRole.USER)
    application = application_factory(status=S.DRAFT)

    with pytest.raises(PermissionDenied) as legal:
        gate.check_transition_permission(stranger, application, S.SUBMIT)
    with pytest.raises(PermissionDenied):
        gate.check_transition_permission(stranger, application, S.PAID)

    assert "own or assigned" in str(legal.value)


@pytest.mark.django_db
def test_inactive_profiles_are_denied_everything(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN, is_active=False)
    application = application_factory(status=S.SUBMIT)

    with pytest.raises(PermissionDenied, match="deactivated"):
        gate.check_transition_permission(admin, application, S.COMPLETED)
    assert gate.permitted_targets(admin, application) == []
    assert not gate.visible_applications(admin, Application.objects.all()).exists()


def test_missing_profile_is_denied():
    with pytest.raises(PermissionDenied):
        gate.ensure_admin(None)


@pytest.mark.django_db
def test_role_denial_names_role_and_target(profile_factory, application_factory):
    partner = profile_factory(role=UserRole.PARTNER)
    application = application_factory(created_by=partner, status=S.SUBMIT)

    with pytest.raises(PermissionDenied) as excinfo:
        gate.check_transition_permission(partner, application, "completed")

    assert str(excinfo.value) == "Partner accounts cannot move an application to Completed."


@pytest.mark.django_db
def test_permitted_targets_follow_role_and_table(profile_factory, application_factory):
    user = profile_factory(role=UserRole.USER)
    manager = profile_factory(role=UserRole.MANAGER)
    application = application_factory(
        created_by=user, status=S.NEED_MORE_INFO, assigned_manager=manager
    )

    assert gate.permitted_targets(user, application) == [S.SUBMIT]
    assert gate.permitted_targets(manager, application) == [S.RETURN, S.SUBMIT]


@pytest.mark.django_db
def test_visible_applications_are_role_scoped(profile_factory, application_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    manager = profile_factory(role=UserRole.MANAGER)
    partner = profile_factory(role=UserRole.PARTNER)

    partner_app = application_factory(created_by=partner)
    assigned_app = application_factory(assigned_manager=manager)
    manager_app = application_factory(created_by=manager)
    application_factory()

    queryset = Application.objects.all()

    assert gate.visible_applications(admin, queryset).count() == 4
    assert set(gate.visible_applications(manager, queryset)) == {assigned_app, manager_app}
    assert list(gate.visible_applications(partner, queryset)) == [partner_app]
    assert gate.can_view(manager, assigned_app)
    assert not gate.can_view(partner, assigned_app)


@pytest.mark.django_db
def test_only_admins_pass_ensure_admin(profile_factory):
    admin = profile_factory(role=UserRole.ADMIN)
    manager = profile_factory(role=UserRole.MANAGER)

    assert gate.ensure_admin(admin) == admin
    with pytest.raises(PermissionDenied, match="administrators"):
        gate.ensure_admin(manager)

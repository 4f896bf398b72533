"""
FTW Community Backend — Scope Resolver Unit Tests
==================================================

What:  The role-dispatch table for reads and writes.
How:   Actors are built directly; the assignment repository is an AsyncMock,
       so no database is involved.

What we test:
    ✅ Leadership reads are unrestricted
    ✅ core_team reads follow its assignment; no assignment means empty
    ✅ college_lead / coordinator reads are pinned to their own college
    ✅ coordinator and member are denied the college list
    ✅ Malformed and inactive actors are denied everything
    ✅ Write decisions: coordinator college forcing, task fields, reviews
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from ftw_community.domain.roles import Actor, Role
from ftw_community.domain.scope import ScopeFilter
from ftw_community.exceptions import AuthorizationDenial, ValidationError
from ftw_community.services.scope_resolver import (
    TASK_FIELDS_ALL,
    TASK_FIELDS_STATUS_ONLY,
    Resource,
    ScopeResolver,
)

C1 = uuid4()
C2 = uuid4()


def make_actor(role, college_id=None, is_active=True) -> Actor:
    return Actor.build(identity=uuid4(), role=role, college_id=college_id, is_active=is_active)


@pytest.fixture
def resolver(assignments_repo):
    return ScopeResolver(assignments_repo)


class TestCollegeReads:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.CO_LEAD, Role.EXECUTIVE_LEAD])
    async def test_leadership_is_unrestricted(self, resolver, mock_db_session, role):
        scope = await resolver.read_scope(mock_db_session, make_actor(role), Resource.COLLEGES)
        assert scope.is_unrestricted

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role", [Role.COORDINATOR, Role.MEMBER])
    async def test_coordinator_and_member_are_denied(self, resolver, mock_db_session, role):
        with pytest.raises(AuthorizationDenial) as exc_info:
            await resolver.read_scope(mock_db_session, make_actor(role, C1), Resource.COLLEGES)
        assert exc_info.value.message == "Insufficient permissions"

    @pytest.mark.asyncio
    async def test_core_team_without_assignment_sees_nothing(
        self, resolver, mock_db_session, assignments_repo
    ):
        scope = await resolver.college_scope(mock_db_session, make_actor(Role.CORE_TEAM))
        assert scope.is_empty
        assignments_repo.assigned_college_ids.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_core_team_sees_assigned_colleges(
        self, resolver, mock_db_session, assignments_repo
    ):
        assignments_repo.assigned_college_ids.return_value = frozenset({C1, C2})
        scope = await resolver.college_scope(mock_db_session, make_actor(Role.CORE_TEAM))
        assert scope == ScopeFilter("id", frozenset({C1, C2}))

    @pytest.mark.asyncio
    async def test_college_lead_sees_colleges_it_leads(self, resolver, mock_db_session):
        lead = make_actor(Role.COLLEGE_LEAD, C1)
        scope = await resolver.college_scope(mock_db_session, lead)
        assert scope == ScopeFilter("college_lead_id", frozenset({lead.identity}))


class TestWorkReads:

    @pytest.mark.asyncio
    async def test_college_lead_task_filter_is_own_college(self, resolver, mock_db_session):
        scope = await resolver.read_scope(
            mock_db_session, make_actor(Role.COLLEGE_LEAD, C1), Resource.TASKS
        )
        assert scope == ScopeFilter("college_id", frozenset({C1}))

    @pytest.mark.asyncio
    async def test_super_admin_task_filter_is_unrestricted(self, resolver, mock_db_session):
        scope = await resolver.read_scope(
            mock_db_session, make_actor(Role.SUPER_ADMIN), Resource.TASKS
        )
        assert scope == ScopeFilter.unrestricted()

    @pytest.mark.asyncio
    async def test_coordinator_report_filter_is_own_college(self, resolver, mock_db_session):
        scope = await resolver.read_scope(
            mock_db_session, make_actor(Role.COORDINATOR, C2), Resource.REPORTS
        )
        assert scope.values == frozenset({C2})

    @pytest.mark.asyncio
    async def test_college_bound_actor_without_college_gets_empty_filter(
        self, resolver, mock_db_session
    ):
        scope = await resolver.work_scope(mock_db_session, make_actor(Role.COORDINATOR, None))
        assert scope.is_empty

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource", [Resource.TASKS, Resource.REPORTS])
    async def test_core_team_without_assignment_gets_empty_filter(
        self, resolver, mock_db_session, resource
    ):
        scope = await resolver.read_scope(mock_db_session, make_actor(Role.CORE_TEAM), resource)
        assert scope.is_empty

    @pytest.mark.asyncio
    async def test_member_is_denied_tasks(self, resolver, mock_db_session):
        with pytest.raises(AuthorizationDenial):
            await resolver.read_scope(mock_db_session, make_actor(Role.MEMBER, C1), Resource.TASKS)


class TestMalformedActors:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource", list(Resource))
    async def test_unknown_role_is_denied_everywhere(self, resolver, mock_db_session, resource):
        actor = make_actor("grand_wizard", C1)
        assert actor.role is None
        with pytest.raises(AuthorizationDenial):
            await resolver.read_scope(mock_db_session, actor, resource)

    @pytest.mark.asyncio
    async def test_inactive_super_admin_is_denied(self, resolver, mock_db_session):
        with pytest.raises(AuthorizationDenial):
            await resolver.read_scope(
                mock_db_session, make_actor(Role.SUPER_ADMIN, is_active=False), Resource.COLLEGES
            )

    def test_unknown_role_has_no_permission_flags(self, resolver):
        with pytest.raises(AuthorizationDenial):
            resolver.require_permission(make_actor(None), "can_manage_videos")


class TestDirectoryAndCoordinators:

    @pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.CO_LEAD, Role.EXECUTIVE_LEAD])
    def test_leadership_reads_team_directory(self, resolver, role):
        assert resolver.team_scope(make_actor(role)).is_unrestricted

    @pytest.mark.parametrize("role", [Role.CORE_TEAM, Role.COLLEGE_LEAD, Role.MEMBER])
    def test_others_are_denied_team_directory(self, resolver, role):
        with pytest.raises(AuthorizationDenial):
            resolver.team_scope(make_actor(role, C1))

    def test_college_lead_sees_own_coordinators(self, resolver):
        scope = resolver.coordinator_scope(make_actor(Role.COLLEGE_LEAD, C1))
        assert scope == ScopeFilter("college_id", frozenset({C1}))

    def test_co_lead_is_denied_coordinator_list(self, resolver):
        with pytest.raises(AuthorizationDenial):
            resolver.coordinator_scope(make_actor(Role.CO_LEAD))


class TestHierarchyWrites:

    @pytest.mark.parametrize("role", [Role.CO_LEAD, Role.EXECUTIVE_LEAD, Role.COLLEGE_LEAD])
    def test_only_super_admin_creates_colleges(self, resolver, role):
        with pytest.raises(AuthorizationDenial):
            resolver.authorize_college_creation(make_actor(role))
        resolver.authorize_college_creation(make_actor(Role.SUPER_ADMIN))

    def test_college_lead_coordinator_college_is_forced(self, resolver):
        lead = make_actor(Role.COLLEGE_LEAD, C1)
        assert resolver.resolve_coordinator_college(lead, C2) == C1
        assert resolver.resolve_coordinator_college(lead, None) == C1

    def test_college_lead_without_college_cannot_create_coordinator(self, resolver):
        with pytest.raises(AuthorizationDenial):
            resolver.resolve_coordinator_college(make_actor(Role.COLLEGE_LEAD, None), C2)

    def test_super_admin_must_name_coordinator_college(self, resolver):
        admin = make_actor(Role.SUPER_ADMIN)
        assert resolver.resolve_coordinator_college(admin, C2) == C2
        with pytest.raises(ValidationError):
            resolver.resolve_coordinator_college(admin, None)

    def test_core_team_cannot_create_coordinators(self, resolver):
        with pytest.raises(AuthorizationDenial):
            resolver.resolve_coordinator_college(make_actor(Role.CORE_TEAM), C1)

    def test_core_assignment_needs_leadership(self, resolver):
        resolver.authorize_core_assignment(make_actor(Role.EXECUTIVE_LEAD))
        with pytest.raises(AuthorizationDenial):
            resolver.authorize_core_assignment(make_actor(Role.CORE_TEAM))


class TestTaskWrites:

    @pytest.mark.asyncio
    async def test_coordinator_task_goes_to_own_college(self, resolver, mock_db_session):
        college = await resolver.resolve_task_college(
            mock_db_session, make_actor(Role.COORDINATOR, C1), C2
        )
        assert college == C1

    @pytest.mark.asyncio
    async def test_core_team_task_must_target_assigned_college(
        self, resolver, mock_db_session, assignments_repo
    ):
        assignments_repo.assigned_college_ids.return_value = frozenset({C1})
        actor = make_actor(Role.CORE_TEAM)
        assert await resolver.resolve_task_college(mock_db_session, actor, C1) == C1
        with pytest.raises(AuthorizationDenial):
            await resolver.resolve_task_college(mock_db_session, actor, C2)

    @pytest.mark.asyncio
    async def test_member_cannot_create_tasks(self, resolver, mock_db_session):
        with pytest.raises(AuthorizationDenial):
            await resolver.resolve_task_college(mock_db_session, make_actor(Role.MEMBER, C1), C1)

    @pytest.mark.asyncio
    async def test_leadership_may_file_organisation_wide_task(self, resolver, mock_db_session):
        assert await resolver.resolve_task_college(
            mock_db_session, make_actor(Role.CO_LEAD), None
        ) is None

    @pytest.mark.asyncio
    async def test_coordinator_may_only_change_status(self, resolver, mock_db_session):
        task = SimpleNamespace(college_id=C1)
        decision = await resolver.task_update_decision(
            mock_db_session, make_actor(Role.COORDINATOR, C1), task
        )
        assert decision.mutable_fields == TASK_FIELDS_STATUS_ONLY
        decision.check_fields({"status"})
        with pytest.raises(AuthorizationDenial):
            decision.check_fields({"status", "title"})

    @pytest.mark.asyncio
    async def test_leadership_may_change_every_task_field(self, resolver, mock_db_session):
        decision = await resolver.task_update_decision(
            mock_db_session, make_actor(Role.EXECUTIVE_LEAD), SimpleNamespace(college_id=None)
        )
        assert decision.mutable_fields == TASK_FIELDS_ALL

    @pytest.mark.asyncio
    async def test_task_outside_scope_is_denied(self, resolver, mock_db_session):
        with pytest.raises(AuthorizationDenial):
            await resolver.task_update_decision(
                mock_db_session, make_actor(Role.COLLEGE_LEAD, C1), SimpleNamespace(college_id=C2)
            )


class TestReportWrites:

    def test_report_college_is_authors_own(self, resolver):
        assert resolver.report_submission_college(make_actor(Role.COORDINATOR, C1)) == C1

    @pytest.mark.parametrize("role", [Role.SUPER_ADMIN, Role.CORE_TEAM, Role.MEMBER])
    def test_only_college_staff_submit_reports(self, resolver, role):
        with pytest.raises(AuthorizationDenial):
            resolver.report_submission_college(make_actor(role, C1))

    @pytest.mark.asyncio
    async def test_core_team_reviews_only_assigned_colleges(
        self, resolver, mock_db_session, assignments_repo
    ):
        assignments_repo.assigned_college_ids.return_value = frozenset({C1})
        actor = make_actor(Role.CORE_TEAM)
        decision = await resolver.report_review_decision(
            mock_db_session, actor, SimpleNamespace(college_id=C1)
        )
        assert decision.mutable_fields == frozenset({"status"})
        with pytest.raises(AuthorizationDenial):
            await resolver.report_review_decision(
                mock_db_session, actor, SimpleNamespace(college_id=C2)
            )

    @pytest.mark.asyncio
    async def test_college_lead_cannot_review(self, resolver, mock_db_session):
        with pytest.raises(AuthorizationDenial):
            await resolver.report_review_decision(
                mock_db_session, make_actor(Role.COLLEGE_LEAD, C1), SimpleNamespace(college_id=C1)
            )


class TestPermissionFlags:

    def test_executive_lead_approves_apps_but_not_videos(self, resolver):
        actor = make_actor(Role.EXECUTIVE_LEAD)
        resolver.require_permission(actor, "can_approve_apps")
        with pytest.raises(AuthorizationDenial):
            resolver.require_permission(actor, "can_manage_videos")

    def test_core_team_manages_events_only(self, resolver):
        actor = make_actor(Role.CORE_TEAM)
        resolver.require_permission(actor, "can_manage_events")
        with pytest.raises(AuthorizationDenial):
            resolver.require_permission(actor, "can_manage_top_rated")

    def test_unknown_flag_is_denied(self, resolver):
        with pytest.raises(AuthorizationDenial):
            resolver.require_permission(make_actor(Role.SUPER_ADMIN), "can_launch_rockets")

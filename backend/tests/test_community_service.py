"""
FTW Community Backend — Community Service Tests
================================================

What:  Hierarchy and work-item operations end to end against the in-memory
       database: the resolver's scope decisions flowing through real queries.

What we test:
    ✅ Colleges: creation elevates the named lead, deletion locks its users
    ✅ Coordinators land in the lead's own college whatever the request says
    ✅ Core team without an assignment sees nothing
    ✅ Task and report visibility per role, field-level update checks
"""

import warnings
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from ftw_community.domain.roles import Role
from ftw_community.exceptions import (
    AuthorizationDenial,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ftw_community.models.college import CoordinatorAssignment
from ftw_community.services.community_service import CommunityService
from ftw_community.services.identity_service import actor_from_user


@pytest.fixture
def community(container):
    return container.community


@pytest.fixture
def hierarchy(db_session, make_user, make_college):
    """
    Two colleges with a lead each, plus the roles above them.

    Usage:
        h = await hierarchy()
        h.lead1, h.c1, h.core ...
    """
    async def _build():
        admin = await make_user(Role.SUPER_ADMIN)
        lead1 = await make_user(Role.COLLEGE_LEAD)
        lead2 = await make_user(Role.COLLEGE_LEAD)
        c1 = await make_college("Stanford", created_by=admin, lead=lead1)
        c2 = await make_college("Berkeley", created_by=admin, lead=lead2)
        lead1.college_id = c1.id
        lead2.college_id = c2.id
        await db_session.commit()
        return SimpleNamespace(
            admin=admin,
            exec_lead=await make_user(Role.EXECUTIVE_LEAD),
            core=await make_user(Role.CORE_TEAM),
            lead1=lead1,
            lead2=lead2,
            coord1=await make_user(Role.COORDINATOR, college_id=c1.id),
            member=await make_user(Role.MEMBER),
            c1=c1,
            c2=c2,
        )

    return _build


class TestColleges:

    @pytest.mark.asyncio
    async def test_create_college_elevates_lead(self, db_session, community, make_user):
        admin = await make_user(Role.SUPER_ADMIN)
        future_lead = await make_user(Role.MEMBER)

        college = await community.create_college(
            db_session, actor_from_user(admin), "  MIT  ", college_lead_id=future_lead.id
        )

        assert college.name == "MIT"
        assert college.college_lead_id == future_lead.id
        assert future_lead.role == Role.COLLEGE_LEAD.value
        assert future_lead.college_id == college.id

    @pytest.mark.asyncio
    async def test_create_college_unknown_lead(self, db_session, community, make_user):
        from uuid import uuid4

        admin = await make_user(Role.SUPER_ADMIN)
        with pytest.raises(NotFoundError):
            await community.create_college(
                db_session, actor_from_user(admin), "MIT", college_lead_id=uuid4()
            )

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(ConflictError):
            await community.create_college(db_session, actor_from_user(h.admin), "Stanford")

    @pytest.mark.asyncio
    async def test_only_super_admin_creates(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.create_college(db_session, actor_from_user(h.exec_lead), "MIT")

    @pytest.mark.asyncio
    async def test_college_lead_lists_own_college(self, db_session, community, hierarchy):
        h = await hierarchy()
        colleges = await community.list_colleges(db_session, actor_from_user(h.lead1))
        assert [c.id for c in colleges] == [h.c1.id]

    @pytest.mark.asyncio
    async def test_coordinator_cannot_list_colleges(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.list_colleges(db_session, actor_from_user(h.coord1))

    @pytest.mark.asyncio
    async def test_delete_locks_users_and_prunes_assignments(
        self, db_session, community, hierarchy
    ):
        h = await hierarchy()
        admin = actor_from_user(h.admin)
        await community.create_coordinator(
            db_session, admin, team_id="FTWNEWCO", name="New", passkey="passkey-123",
            college_id=h.c1.id,
        )
        await community.assign_core_team(
            db_session, admin, user_id=h.core.id, vertical="Events",
            college_ids=[h.c1.id, h.c2.id],
        )
        await db_session.commit()

        locked = await community.delete_college(db_session, admin, h.c1.id)
        await db_session.commit()

        # lead1, coord1 and the new coordinator
        assert locked == 3
        await db_session.refresh(h.lead2)
        assert h.lead2.is_active is True

        remaining = await community.assignments.assigned_college_ids(db_session, h.core.id)
        assert remaining == frozenset({h.c2.id})
        rows = await db_session.execute(select(CoordinatorAssignment))
        assert rows.scalars().all() == []

    @pytest.mark.asyncio
    async def test_delete_unknown_college(self, db_session, community, make_user):
        from uuid import uuid4

        admin = await make_user(Role.SUPER_ADMIN)
        with pytest.raises(NotFoundError):
            await community.delete_college(db_session, actor_from_user(admin), uuid4())


class TestDeletionCascadeRetries:

    def _service(self, container, deactivate):
        users = SimpleNamespace(deactivate_by_college=deactivate)
        assignments = SimpleNamespace(prune_college=AsyncMock())
        colleges = SimpleNamespace(
            get=AsyncMock(return_value=SimpleNamespace(id="c1")),
            delete=AsyncMock(),
        )
        return CommunityService(
            resolver=container.resolver,
            users=users,
            colleges=colleges,
            assignments=assignments,
            tasks=None,
            reports=None,
            hasher=container.hasher,
            cascade_attempts=3,
            cascade_min_wait=0,
            cascade_max_wait=0,
        )

    @staticmethod
    def _db():
        db = AsyncMock()
        nested = AsyncMock()
        nested.__aenter__ = AsyncMock(return_value=None)
        nested.__aexit__ = AsyncMock(return_value=False)
        db.begin_nested = lambda: nested
        return db

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, container, make_user):
        admin = await make_user(Role.SUPER_ADMIN)
        deactivate = AsyncMock(side_effect=[OperationalError("UPDATE", {}, Exception("busy")), 4])
        service = self._service(container, deactivate)

        locked = await service.delete_college(self._db(), actor_from_user(admin), "c1")

        assert locked == 4
        assert deactivate.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_keep_the_deletion(self, container, make_user):
        admin = await make_user(Role.SUPER_ADMIN)
        deactivate = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("down")))
        service = self._service(container, deactivate)

        locked = await service.delete_college(self._db(), actor_from_user(admin), "c1")

        assert locked == 0
        assert deactivate.await_count == 3
        service.colleges.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_backoff_raises_no_deprecation_warning(self, container, make_user):
        admin = await make_user(Role.SUPER_ADMIN)
        deactivate = AsyncMock(side_effect=[OperationalError("UPDATE", {}, Exception("busy")), 1])
        service = self._service(container, deactivate)

        with warnings.catch_warnings():
            warnings.simplefilter("error", DeprecationWarning)
            locked = await service.delete_college(self._db(), actor_from_user(admin), "c1")

        assert locked == 1


class TestStaff:

    @pytest.mark.asyncio
    async def test_team_list_excludes_members(self, db_session, community, hierarchy):
        h = await hierarchy()
        team = await community.list_team(db_session, actor_from_user(h.exec_lead))
        ids = {u.id for u in team}
        assert h.member.id not in ids
        assert h.coord1.id in ids

    @pytest.mark.asyncio
    async def test_directory_is_ranked(self, db_session, community, hierarchy):
        h = await hierarchy()
        users = await community.directory(db_session, actor_from_user(h.admin))
        assert users[0].id == h.admin.id
        assert users[-1].id == h.member.id

    @pytest.mark.asyncio
    async def test_directory_denied_below_leadership(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.directory(db_session, actor_from_user(h.core))

    @pytest.mark.asyncio
    async def test_create_member_with_unknown_role(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(ValidationError) as exc_info:
            await community.create_team_member(
                db_session, actor_from_user(h.admin), team_id="FTWX", name="X",
                passkey="passkey-123", role="overlord",
            )
        assert exc_info.value.field == "role"

    @pytest.mark.asyncio
    async def test_create_member_hashes_passkey(self, db_session, community, container, hierarchy):
        h = await hierarchy()
        user = await community.create_team_member(
            db_session, actor_from_user(h.admin), team_id="FTWX", name="X",
            passkey="passkey-123", role="core_team",
        )
        assert user.passkey_hash != "passkey-123"
        assert container.hasher.verify("passkey-123", user.passkey_hash)

    @pytest.mark.asyncio
    async def test_duplicate_team_id_conflicts(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(ConflictError):
            await community.create_team_member(
                db_session, actor_from_user(h.admin), team_id=h.member.team_id,
                name="Dup", passkey="passkey-123", role="member",
            )


class TestCoordinators:

    @pytest.mark.asyncio
    async def test_lead_coordinator_lands_in_own_college(self, db_session, community, hierarchy):
        h = await hierarchy()

        coordinator = await community.create_coordinator(
            db_session, actor_from_user(h.lead1), team_id="FTWC9", name="Nine",
            passkey="passkey-123", college_id=h.c2.id,
        )

        assert coordinator.college_id == h.c1.id
        assert coordinator.role == Role.COORDINATOR.value
        rows = await db_session.execute(
            select(CoordinatorAssignment).where(CoordinatorAssignment.user_id == coordinator.id)
        )
        assignment = rows.scalar_one()
        assert assignment.college_id == h.c1.id
        assert assignment.assigned_by_id == h.lead1.id

    @pytest.mark.asyncio
    async def test_super_admin_must_name_college(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(ValidationError):
            await community.create_coordinator(
                db_session, actor_from_user(h.admin), team_id="FTWC9", name="Nine",
                passkey="passkey-123",
            )

    @pytest.mark.asyncio
    async def test_lead_lists_own_coordinators(self, db_session, community, hierarchy, make_user):
        h = await hierarchy()
        await make_user(Role.COORDINATOR, college_id=h.c2.id)

        coordinators = await community.list_coordinators(db_session, actor_from_user(h.lead1))

        assert [c.id for c in coordinators] == [h.coord1.id]


class TestCoreTeam:

    @pytest.mark.asyncio
    async def test_assign_and_replace(self, db_session, community, hierarchy):
        h = await hierarchy()
        actor = actor_from_user(h.exec_lead)

        first = await community.assign_core_team(
            db_session, actor, user_id=h.core.id, vertical="Events", college_ids=[h.c1.id]
        )
        second = await community.assign_core_team(
            db_session, actor, user_id=h.core.id, vertical="Growth", college_ids=[h.c2.id]
        )

        assert first.id == second.id
        assert second.executive_lead_id == h.exec_lead.id
        assert await community.assignment_colleges(db_session, second) == [h.c2.id]

    @pytest.mark.asyncio
    async def test_target_must_be_core_team(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(ValidationError):
            await community.assign_core_team(
                db_session, actor_from_user(h.admin), user_id=h.member.id,
                vertical="Events", college_ids=[h.c1.id],
            )

    @pytest.mark.asyncio
    async def test_unknown_college_rejected(self, db_session, community, hierarchy):
        from uuid import uuid4

        h = await hierarchy()
        with pytest.raises(ValidationError) as exc_info:
            await community.assign_core_team(
                db_session, actor_from_user(h.admin), user_id=h.core.id,
                vertical="Events", college_ids=[h.c1.id, uuid4()],
            )
        assert exc_info.value.field == "college_ids"

    @pytest.mark.asyncio
    async def test_core_team_cannot_assign(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.assign_core_team(
                db_session, actor_from_user(h.core), user_id=h.core.id,
                vertical="Events", college_ids=[h.c1.id],
            )

    @pytest.mark.asyncio
    async def test_unassigned_core_team_sees_nothing(self, db_session, community, hierarchy):
        h = await hierarchy()
        admin = actor_from_user(h.admin)
        await community.create_task(db_session, admin, {"title": "T1"}, college_id=h.c1.id)
        await db_session.commit()

        actor = actor_from_user(h.core)
        assert await community.list_colleges(db_session, actor) == []
        assert await community.list_tasks(db_session, actor) == []
        assert await community.list_reports(db_session, actor) == []

    @pytest.mark.asyncio
    async def test_assigned_core_team_sees_its_colleges(self, db_session, community, hierarchy):
        h = await hierarchy()
        admin = actor_from_user(h.admin)
        await community.assign_core_team(
            db_session, admin, user_id=h.core.id, vertical="Events", college_ids=[h.c2.id]
        )
        await community.create_task(db_session, admin, {"title": "T1"}, college_id=h.c1.id)
        t2 = await community.create_task(db_session, admin, {"title": "T2"}, college_id=h.c2.id)
        await db_session.commit()

        actor = actor_from_user(h.core)
        assert [c.id for c in await community.list_colleges(db_session, actor)] == [h.c2.id]
        assert [t.id for t in await community.list_tasks(db_session, actor)] == [t2.id]


class TestTasks:

    @pytest.mark.asyncio
    async def test_lead_sees_only_own_college(self, db_session, community, hierarchy):
        h = await hierarchy()
        admin = actor_from_user(h.admin)
        t1 = await community.create_task(db_session, admin, {"title": "T1"}, college_id=h.c1.id)
        await community.create_task(db_session, admin, {"title": "T2"}, college_id=h.c2.id)
        await community.create_task(db_session, admin, {"title": "Global"})
        await db_session.commit()

        tasks = await community.list_tasks(db_session, actor_from_user(h.lead1))

        assert [t.id for t in tasks] == [t1.id]

    @pytest.mark.asyncio
    async def test_super_admin_sees_everything(self, db_session, community, hierarchy):
        h = await hierarchy()
        admin = actor_from_user(h.admin)
        await community.create_task(db_session, admin, {"title": "T1"}, college_id=h.c1.id)
        await community.create_task(db_session, admin, {"title": "Global"})
        await db_session.commit()

        assert len(await community.list_tasks(db_session, admin)) == 2

    @pytest.mark.asyncio
    async def test_lead_task_forced_into_own_college(self, db_session, community, hierarchy):
        h = await hierarchy()
        task = await community.create_task(
            db_session, actor_from_user(h.lead1), {"title": "Mine"}, college_id=h.c2.id
        )
        assert task.college_id == h.c1.id

    @pytest.mark.asyncio
    async def test_member_cannot_create(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.create_task(db_session, actor_from_user(h.member), {"title": "X"})

    @pytest.mark.asyncio
    async def test_coordinator_may_only_move_status(self, db_session, community, hierarchy):
        h = await hierarchy()
        task = await community.create_task(
            db_session, actor_from_user(h.lead1), {"title": "Mine"}
        )
        coordinator = actor_from_user(h.coord1)

        updated = await community.update_task(
            db_session, coordinator, task.id, {"status": "in-progress"}
        )
        assert updated.status == "in-progress"

        with pytest.raises(AuthorizationDenial):
            await community.update_task(
                db_session, coordinator, task.id, {"status": "done", "title": "Renamed"}
            )
        assert task.title == "Mine"

    @pytest.mark.asyncio
    async def test_out_of_scope_task_is_denied(self, db_session, community, hierarchy):
        h = await hierarchy()
        task = await community.create_task(
            db_session, actor_from_user(h.lead2), {"title": "Theirs"}
        )
        with pytest.raises(AuthorizationDenial):
            await community.update_task(
                db_session, actor_from_user(h.lead1), task.id, {"status": "done"}
            )

    @pytest.mark.asyncio
    async def test_leadership_may_edit_everything(self, db_session, community, hierarchy):
        h = await hierarchy()
        task = await community.create_task(
            db_session, actor_from_user(h.lead1), {"title": "Mine"}
        )
        updated = await community.update_task(
            db_session, actor_from_user(h.exec_lead), task.id,
            {"title": "Renamed", "priority": "high"},
        )
        assert updated.title == "Renamed"
        assert updated.priority == "high"

    @pytest.mark.asyncio
    async def test_unknown_task(self, db_session, community, hierarchy):
        from uuid import uuid4

        h = await hierarchy()
        with pytest.raises(NotFoundError):
            await community.update_task(
                db_session, actor_from_user(h.admin), uuid4(), {"status": "done"}
            )

    @pytest.mark.asyncio
    async def test_unknown_college_is_not_found(self, db_session, community, hierarchy):
        from uuid import uuid4

        h = await hierarchy()
        with pytest.raises(NotFoundError):
            await community.create_task(
                db_session, actor_from_user(h.admin), {"title": "Orphan"}, college_id=uuid4()
            )
        assert await community.list_tasks(db_session, actor_from_user(h.admin)) == []

    @pytest.mark.asyncio
    async def test_unknown_assignee_is_not_found(self, db_session, community, hierarchy):
        from uuid import uuid4

        h = await hierarchy()
        admin = actor_from_user(h.admin)
        with pytest.raises(NotFoundError):
            await community.create_task(
                db_session, admin, {"title": "Ghost", "assigned_to_id": uuid4()}
            )

        task = await community.create_task(
            db_session, admin, {"title": "Real", "assigned_to_id": h.coord1.id},
            college_id=h.c1.id,
        )
        with pytest.raises(NotFoundError):
            await community.update_task(db_session, admin, task.id, {"assigned_to_id": uuid4()})
        assert task.assigned_to_id == h.coord1.id


class TestReports:

    @pytest.mark.asyncio
    async def test_submit_uses_own_college(self, db_session, community, hierarchy):
        h = await hierarchy()
        report = await community.submit_report(
            db_session, actor_from_user(h.coord1), "Week 1", {"events": 2}
        )
        assert report.college_id == h.c1.id
        assert report.author_id == h.coord1.id
        assert report.status == "submitted"

    @pytest.mark.asyncio
    async def test_leadership_cannot_submit(self, db_session, community, hierarchy):
        h = await hierarchy()
        with pytest.raises(AuthorizationDenial):
            await community.submit_report(db_session, actor_from_user(h.admin), "Week 1")

    @pytest.mark.asyncio
    async def test_lead_reads_own_college_reports(self, db_session, community, hierarchy):
        h = await hierarchy()
        mine = await community.submit_report(db_session, actor_from_user(h.coord1), "C1")
        await community.submit_report(db_session, actor_from_user(h.lead2), "C2")
        await db_session.commit()

        reports = await community.list_reports(db_session, actor_from_user(h.lead1))

        assert [r.id for r in reports] == [mine.id]

    @pytest.mark.asyncio
    async def test_review_sets_reviewer(self, db_session, community, hierarchy):
        h = await hierarchy()
        report = await community.submit_report(db_session, actor_from_user(h.coord1), "C1")

        reviewed = await community.review_report(
            db_session, actor_from_user(h.exec_lead), report.id, "approved"
        )

        assert reviewed.status == "approved"
        assert reviewed.reviewed_by_id == h.exec_lead.id

    @pytest.mark.asyncio
    async def test_college_lead_cannot_review(self, db_session, community, hierarchy):
        h = await hierarchy()
        report = await community.submit_report(db_session, actor_from_user(h.coord1), "C1")
        with pytest.raises(AuthorizationDenial):
            await community.review_report(
                db_session, actor_from_user(h.lead1), report.id, "approved"
            )

    @pytest.mark.asyncio
    async def test_core_team_reviews_only_assigned(self, db_session, community, hierarchy):
        h = await hierarchy()
        await community.assign_core_team(
            db_session, actor_from_user(h.admin), user_id=h.core.id,
            vertical="Events", college_ids=[h.c2.id],
        )
        c1_report = await community.submit_report(db_session, actor_from_user(h.coord1), "C1")
        c2_report = await community.submit_report(db_session, actor_from_user(h.lead2), "C2")
        core = actor_from_user(h.core)

        with pytest.raises(AuthorizationDenial):
            await community.review_report(db_session, core, c1_report.id, "approved")
        reviewed = await community.review_report(db_session, core, c2_report.id, "approved")
        assert reviewed.status == "approved"

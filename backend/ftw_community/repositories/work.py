"""
FTW Community Backend — Task & Report Repositories
===================================================

What:  Scoped reads and plain writes for tasks and weekly reports.
How:   Reads take the ScopeFilter the resolver built for the actor; the
       filter's field is always `college_id` for these two resources.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.domain.scope import ScopeFilter
from ftw_community.models.work import Report, Task
from ftw_community.repositories import apply_scope


class TaskRepository:

    async def get(self, db: AsyncSession, task_id: UUID) -> Optional[Task]:
        result = await db.execute(select(Task).where(Task.id == task_id))
        return result.scalar_one_or_none()

    async def list_scoped(self, db: AsyncSession, scope: ScopeFilter) -> List[Task]:
        if scope.is_empty:
            return []
        query = apply_scope(select(Task), Task, scope).order_by(desc(Task.created_at))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def add(self, db: AsyncSession, task: Task) -> Task:
        db.add(task)
        await db.flush()
        return task


class ReportRepository:

    async def get(self, db: AsyncSession, report_id: UUID) -> Optional[Report]:
        result = await db.execute(select(Report).where(Report.id == report_id))
        return result.scalar_one_or_none()

    async def list_scoped(self, db: AsyncSession, scope: ScopeFilter) -> List[Report]:
        if scope.is_empty:
            return []
        query = apply_scope(select(Report), Report, scope).order_by(desc(Report.created_at))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def add(self, db: AsyncSession, report: Report) -> Report:
        db.add(report)
        await db.flush()
        return report

"""
FTW Community Backend — Service Container
==========================================

What:  Builds the repositories, the resolver and the services exactly once
       and hands them to routes through `app.state.container`.
How:   Plain construction, no framework. Every object built here is
       stateless per request; the request's AsyncSession is passed to each
       call instead.

Dependency graph:
    UserRepository ─┬─────────────────────────────▶ IdentityService ◀─ PasswordHasher
                    │                                                 ◀─ SessionSigner
    AssignmentRepository ──▶ ScopeResolver ──┬──▶ CommunityService ◀─ College/Task/Report repos
                                             └──▶ ContentService   ◀─ ContentRepository
"""

from dataclasses import dataclass

from ftw_community.config import Settings
from ftw_community.repositories.colleges import AssignmentRepository, CollegeRepository
from ftw_community.repositories.content import ContentRepository
from ftw_community.repositories.users import UserRepository
from ftw_community.repositories.work import ReportRepository, TaskRepository
from ftw_community.services.community_service import CommunityService
from ftw_community.services.content_service import ContentService
from ftw_community.services.identity_service import IdentityService
from ftw_community.services.passwords import PasswordHasher
from ftw_community.services.scope_resolver import ScopeResolver
from ftw_community.services.sessions import SessionSigner


@dataclass(frozen=True)
class ServiceContainer:
    users: UserRepository
    colleges: CollegeRepository
    assignments: AssignmentRepository
    content_repo: ContentRepository
    hasher: PasswordHasher
    resolver: ScopeResolver
    identity: IdentityService
    community: CommunityService
    content: ContentService


def build_container(config: Settings) -> ServiceContainer:
    users = UserRepository()
    colleges = CollegeRepository()
    assignments = AssignmentRepository()
    content_repo = ContentRepository()

    hasher = PasswordHasher(rounds=config.bcrypt_rounds)
    signer = SessionSigner(
        secret=config.jwt_secret,
        algorithm=config.jwt_algorithm,
        ttl_seconds=config.session_ttl_seconds,
    )
    resolver = ScopeResolver(assignments)

    return ServiceContainer(
        users=users,
        colleges=colleges,
        assignments=assignments,
        content_repo=content_repo,
        hasher=hasher,
        resolver=resolver,
        identity=IdentityService(users, hasher, signer),
        community=CommunityService(
            resolver=resolver,
            users=users,
            colleges=colleges,
            assignments=assignments,
            tasks=TaskRepository(),
            reports=ReportRepository(),
            hasher=hasher,
            cascade_attempts=config.cascade_retry_attempts,
            cascade_min_wait=config.cascade_retry_min_wait,
            cascade_max_wait=config.cascade_retry_max_wait,
        ),
        content=ContentService(resolver, content_repo, users),
    )

"""
FTW Community Backend — Request Dependencies
=============================================

What:  FastAPI dependencies shared by the route modules.

    get_container   the ServiceContainer stored on app.state
    current_actor   the Actor behind `Authorization: Bearer <token>`,
                    rebuilt from the database on every request
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ftw_community.container import ServiceContainer
from ftw_community.database import get_db_session
from ftw_community.domain.roles import Actor
from ftw_community.exceptions import InvalidSession

# auto_error=False: a missing header is reported as InvalidSession (401),
# not FastAPI's default 403.
bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
    container: ServiceContainer = Depends(get_container),
) -> Actor:
    if credentials is None or not credentials.credentials:
        raise InvalidSession(context={"reason": "missing_token"})
    return await container.identity.resolve_actor(db, credentials.credentials)

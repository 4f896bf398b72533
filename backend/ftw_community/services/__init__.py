# Services package init
"""
FTW Community Backend — Services Layer
=======================================

What:  Business rules between the routes (HTTP) and the repositories (SQL).

Service Inventory:
    - passwords.py:          PasswordHasher (passlib bcrypt)
    - sessions.py:           SessionSigner (python-jose HS256 tokens)
    - identity_service.py:   IdentityService: login, sessions, Actor resolution
    - scope_resolver.py:     ScopeResolver: read scopes and write decisions
    - community_service.py:  CommunityService: colleges, staff, tasks, reports
    - content_service.py:    ContentService: applications, events, videos, top rated
    - seed.py:               startup seeding of the bootstrap admin and video

Services hold no per-request state. Each method receives the request's
AsyncSession and the resolved Actor.
"""

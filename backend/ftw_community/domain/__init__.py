# Domain package init
"""
FTW Community Backend — Domain Types
=====================================

What:  Plain, persistence-free types shared by services and the resolver.

    - roles.py:  Role enum, role-derived PermissionFlags, Actor descriptor
    - scope.py:  ScopeFilter (read predicates) and WriteDecision
"""

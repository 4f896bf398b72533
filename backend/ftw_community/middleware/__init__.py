# Middleware package init
"""
FTW Community Backend — Middleware Package
===========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Access Log] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are rejected before a session is
       opened or a token verified
    2. Request ID: correlation id for logs and error bodies
    3. Access Log: method, path, status, duration, tagged with the request id

Authentication is NOT middleware: routes that need a session declare the
`current_actor` dependency, so public routes never touch the token verifier.
"""

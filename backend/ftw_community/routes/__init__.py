# Routes package init
"""
FTW Community Backend — API Routes Package
===========================================

Route Inventory:
    - auth.py:       /api/login, /api/me, /api/profile/*
    - community.py:  /api/colleges, /api/community/*
    - work.py:       /api/tasks, /api/reports
    - content.py:    /api/applications, /api/events, /api/videos,
                     /api/toprated, /api/stats
    - health.py:     /health

Routes stay thin: they parse the request, resolve the Actor through the
`current_actor` dependency, call one service method and shape the response.
Every authorization decision happens in the services.
"""

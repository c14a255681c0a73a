# Routes package init
"""
Jokes API Backend — API Routes Package
========================================

Route Inventory:
    - auth.py:       POST /api/auth/register, POST /api/auth/login,
                     GET  /api/auth/me, POST /api/auth/check-availability
    - jokes.py:      GET/POST /api/jokes, GET /api/jokes/random,
                     GET/PATCH/DELETE /api/jokes/{id},
                     GET/POST /api/jokes/{id}/comments
    - favorites.py:  POST/DELETE /api/jokes/{id}/favorite,
                     GET /api/users/{id}/favorites
    - health.py:     GET /health

    dependencies.py holds the authorization guard shared by the routes above.

Routes stay thin: parse and validate input, call one service method, pick the
status code. Ownership rules and queries live in jokes_api.services.
"""

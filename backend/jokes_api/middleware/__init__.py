# Middleware package init
"""
Jokes API Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first, as added in create_app()):
    Request → [Request ID] → [Access Log] → [Rate Limit] → [GZip] → [CORS] → Route

    Request ID is outermost so the access line and a throttled 429 both carry it.
"""

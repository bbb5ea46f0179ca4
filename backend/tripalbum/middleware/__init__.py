# Middleware package init
"""
TripAlbum Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (last added in main.py runs first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    - Rate Limit rejects an over-limit client before any other work.
    - Request ID sets the correlation id used by logs, error bodies and
      RequestContext.
    - Logging writes one access line per request with status and duration.
"""

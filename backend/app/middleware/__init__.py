# Middleware package init
"""
Inkpost Backend — Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every log line, including the access line and
      error bodies, carries the same correlation id.
    - Access Log measures duration around everything below it.

Responses pass back through the chain in reverse order.
"""

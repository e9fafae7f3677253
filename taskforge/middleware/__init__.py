# Middleware package init
"""
Taskforge Backend — Middleware Package
========================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID first, so every log line of the request carries it
    - Logging measures everything below it, including error handlers
"""

"""
SnipKeep Backend — Middleware Package
======================================

Middleware Chain (outermost first):
    Request → [Request ID] → [Rate Limit] → [Logging] → [CORS] → Route Handler

    1. Request ID first so that every log line and every error body,
       including 429 rejections, carries the correlation id.
    2. Rate Limit rejects abusive clients before any storage I/O.
    3. Logging records method, path, status and duration.
"""

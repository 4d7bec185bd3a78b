"""
LocalBiz Backend — Middleware Package
=======================================

Cross-cutting concerns applied to every request.

Middleware Chain (order matters):
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are rejected before any work
    2. Request ID: correlation id for every log line of the request
    3. Logging: one access line per request, with status and duration

    Responses travel back through the chain in reverse, so the request id
    header and the access log see the final status code.
"""

# Middleware package init
"""
IdeaVerse Backend — Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Rate Limit] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line and error body carries it,
       a 429 from the rate limiter included
    2. Rate Limit: abusive clients are rejected before any route work
    3. Logging: one access line with status and duration
    4. CORS: FastAPI's CORSMiddleware (handles preflight)
"""

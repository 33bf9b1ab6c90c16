"""
Gemini background removal microservice package.

Exposes reusable primitives for building Gemini requests, running the
removal call, tracking per-user sessions, and serving the FastAPI application.
"""

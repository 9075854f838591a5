"""
Resource API: HTTP service with a request-aware runtime layer.

Application package root.

Layers:
    - core: Settings.
    - infrastructure: SQLAlchemy engine, ORM models, repositories.
    - interfaces: FastAPI routers, Pydantic schemas.
    - shared: Cross-cutting concerns (request context, errors,
      shutdown coordination, security headers, logging).
"""

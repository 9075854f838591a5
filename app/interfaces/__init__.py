"""
Interfaces layer package.

Contains FastAPI routers and Pydantic request/response schemas.
No business logic belongs here. Failures are raised, never rendered:
the central error handlers turn them into responses.
"""

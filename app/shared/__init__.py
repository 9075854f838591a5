"""
Shared module package.

Contains cross-cutting concerns used by every route:
- Request context propagation (correlation ids)
- Error classification and rendering
- Shutdown coordination
- Security headers
- Logging configuration
"""

"""
Infrastructure layer package.

Database engine and session handling, ORM models, repositories
and the persistence errors they raise.
"""

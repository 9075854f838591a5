"""Persistence for the resources collection."""

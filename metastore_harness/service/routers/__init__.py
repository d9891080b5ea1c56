"""Routers exposed by the embedded metastore."""

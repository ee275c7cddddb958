"""
Backend package for the technical council website.

This package provides a FastAPI application with record-store abstractions
over flat files, blob storage and Postgres, so content can be migrated off
the legacy backends onto a single relational database.
"""

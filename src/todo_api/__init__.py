"""
Todo Service package.

A FastAPI application exposing CRUD, search and pagination over todo items
stored in MongoDB. Build an instance with `todo_api.main.create_app`.
"""

__version__ = "1.0.0"

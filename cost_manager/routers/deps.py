"""Shared FastAPI dependencies.

The store handle and settings are opened once by `create_app` and kept on
`app.state`; routes receive them explicitly instead of reaching for globals.
"""

from fastapi import Request

from cost_manager.core.config import Settings
from cost_manager.db.dal import Database


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings

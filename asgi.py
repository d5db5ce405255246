"""
asgi.py -- Production ASGI entry point.

Run with: uvicorn asgi:app

Settings are read from the environment (and .env) exactly once, here. A
missing DATABASE_URL fails at import time, before the server accepts a
connection.
"""

from api.main import create_app
from core.config import get_settings

app = create_app(get_settings())

"""ASGI entrypoint: ``uvicorn carrental.api.app:app``."""

from carrental.api.factory import create_app

app = create_app()

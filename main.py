"""
ASGI entrypoint kept at the project root so `uvicorn main:app` keeps working
on the hosting platform. The application itself lives in `doctavende.main`.
"""

from doctavende.main import app  # type: ignore F401

__all__ = ["app"]

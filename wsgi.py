"""
ASGI entry point for Uvicorn.
Exposes ``app`` for ``uvicorn wsgi:app`` style production deployment.
"""

import sys
from typing import Any
from dotenv import load_dotenv
from mentorhub.config import Settings, ConfigurationError
from mentorhub.interfaces.http.app import create_app

load_dotenv()


def create_application() -> Any:
    """Application factory for Uvicorn."""
    try:
        settings = Settings()
    except ConfigurationError as e:
        print(f"\nConfiguration Error:\n{e}", file=sys.stderr)
        raise SystemExit(1)
    try:
        return create_app(settings)
    except Exception as e:
        print(f"\nFailed to initialize application: {str(e)}")
        print("Please check your configuration and data store settings.")
        raise SystemExit(1)


app = create_application()

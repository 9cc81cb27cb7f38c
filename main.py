from fastapi import FastAPI, HTTPException

from api.app import create_app
from core.constraint import API_TITLE, API_VERSION
from core.pdf_conversion.logging import configure_logging
from core.settings import get_settings

configure_logging(get_settings().log_level)

try:
    app = create_app()
except RuntimeError:
    app = FastAPI(title=API_TITLE, version=API_VERSION)

    @app.get("/")
    async def api_disabled() -> dict[str, str]:
        raise HTTPException(
            status_code=503,
            detail="PDF conversion API disabled. Enable by setting enable_api = true in config.toml",
        )

import logging

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded

from backend.applykit.api.routes.documents import router as documents_router
from backend.applykit.api.routes.health import router as health_router
from backend.applykit.api.routes.metrics import router as metrics_router
from backend.applykit.config import get_settings
from backend.applykit.utils.rate_limiter import limiter, rate_limit_exceeded_handler
from backend.applykit.utils.security_headers import security_headers_middleware

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="ApplyKit Document Generator API", version="0.1.0")

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.middleware("http")(security_headers_middleware)

    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(documents_router)

    # Mounted last so API routes win over static paths.
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.warning(f"Static directory not found, browser client disabled: {settings.static_dir}")

    return app

app = create_app()


def run() -> None:
    settings = get_settings()
    logger.info(f"Server running at http://{settings.host}:{settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()

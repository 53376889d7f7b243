"""
FastAPI Application Entry Point.
"""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import router
from .config import settings, describe_api_key
from .logging_config import configure_logging


logger = logging.getLogger(__name__)


def log_configuration_check():
    """Log whether the Voiceflow credentials look usable."""
    api_key_state = describe_api_key(settings.voiceflow_api_key)
    if api_key_state == "valid":
        logger.info(f"Voiceflow API key: SET ({settings.voiceflow_api_key[:10]}...)")
    else:
        logger.warning(f"Voiceflow API key: {api_key_state.upper()}")

    if settings.voiceflow_project_key:
        logger.info(f"Voiceflow project key: SET ({settings.voiceflow_project_key})")
    else:
        logger.warning("Voiceflow project key: MISSING")
    logger.info(f"Voiceflow runtime URL: {settings.voiceflow_runtime_url}")


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Travel Profile Onboarding",
        description="Conversational onboarding that builds a traveler profile",
        version="1.0.0"
    )

    # Session cookies need credentials, so origins are listed explicitly
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "engine": "voiceflow"
        }

    log_configuration_check()
    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(
        "onboarding.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )


if __name__ == "__main__":
    run()

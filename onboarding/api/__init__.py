"""HTTP API routers."""
from .voiceflow import router

__all__ = ["router"]

"""
Configuration management for the onboarding service.
Covers the Voiceflow dialogue runtime, the session cookie, the server and
the LLM provider used by the trip planner chat.
"""
from pydantic_settings import BaseSettings
from typing import Literal, Optional


DEFAULT_RUNTIME_URL = "https://general-runtime.voiceflow.com"
API_KEY_PREFIX = "VF.DM."

API_KEY_SETUP_STEPS = [
    "1. Go to Voiceflow Dashboard (https://www.voiceflow.com/dashboard)",
    "2. Navigate to Project Settings → API Keys",
    "3. Copy the Dialog Manager API key (starts with VF.DM.)",
    "4. Add it to the environment or .env as VOICEFLOW_API_KEY",
    "5. Restart the server",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Voiceflow Configuration
    voiceflow_api_key: str = ""
    voiceflow_project_key: str = ""
    voiceflow_version: str = "production"
    voiceflow_runtime_url: str = DEFAULT_RUNTIME_URL
    voiceflow_max_retries: int = 2
    voiceflow_retry_delay: float = 1.0
    voiceflow_timeout: float = 30.0

    # Session Cookie
    session_cookie_name: str = "voiceflow_session_id"
    session_max_age_seconds: int = 60 * 60 * 24 * 7  # 7 days
    cookie_secure: bool = False

    # Server Configuration
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = True
    log_level: str = "INFO"

    # Client Configuration
    api_base_url: str = "http://127.0.0.1:8000"

    # Planner LLM Configuration
    llm_provider: Literal["openai", "mistral", "openrouter", "ollama", "mock"] = "mock"
    llm_api_key: str = "ollama"  # Not needed for Ollama
    llm_base_url: str = ""
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 400

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def version_id(self) -> str:
        """Version/project identifier sent with every runtime request."""
        return self.voiceflow_project_key or self.voiceflow_version or "production"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the global settings."""
    return settings


def is_valid_api_key(api_key: Optional[str]) -> bool:
    """Check a Dialog Manager API key for the documented format."""
    if not api_key:
        return False
    if not api_key.startswith(API_KEY_PREFIX):
        return False
    # Placeholder values copied from .env.example
    if "XXXX" in api_key:
        return False
    # Real keys are much longer than the prefix
    if len(api_key) < 20:
        return False
    return True


def describe_api_key(api_key: Optional[str]) -> str:
    """Classify the API key as missing, placeholder, invalid or valid."""
    if not api_key:
        return "missing"
    if "XXXX" in api_key:
        return "placeholder"
    if not is_valid_api_key(api_key):
        return "invalid"
    return "valid"


def get_voiceflow_status(config: Settings) -> dict:
    """Build the configuration report served by the status endpoint."""
    api_key_state = describe_api_key(config.voiceflow_api_key)
    has_project_key = bool(config.voiceflow_project_key)
    is_configured = api_key_state == "valid" and has_project_key

    message = "Voiceflow service is ready"
    instructions: Optional[list[str]] = None

    if api_key_state == "missing":
        message = "Voiceflow API key not configured"
        instructions = list(API_KEY_SETUP_STEPS)
    elif api_key_state == "placeholder":
        message = "Voiceflow API key is a placeholder"
        instructions = [
            "The API key in .env is a placeholder value",
            "Please set your real Voiceflow API key as VOICEFLOW_API_KEY",
            "Visit https://www.voiceflow.com/dashboard → Project Settings → API Keys",
        ]
    elif api_key_state == "invalid":
        message = "Voiceflow API key has invalid format"
        instructions = [
            "API keys should start with 'VF.DM.' and be at least 20 characters",
            "Please verify VOICEFLOW_API_KEY",
        ]
    elif not has_project_key:
        message = "Voiceflow project key not configured"
        instructions = [
            "Set VOICEFLOW_PROJECT_KEY",
            "Use your Voiceflow project ID (found in project URL or settings)",
        ]

    return {
        "status": "ready" if is_configured else "not_configured",
        "message": message,
        "configuration": {
            "apiKey": api_key_state,
            "projectKey": config.voiceflow_project_key if has_project_key else "missing",
            "runtimeUrl": config.voiceflow_runtime_url,
        },
        "setupInstructions": instructions,
    }


PROVIDER_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "mistral": "https://api.mistral.ai/v1",
    "openrouter": "https://openrouter.ai/api/v1",
    "ollama": "http://localhost:11434/v1",
}


def get_llm_config(config: Optional[Settings] = None) -> dict:
    """Planner LLM settings; an explicit LLM_BASE_URL beats the provider default."""
    config = config or settings
    return {
        "provider": config.llm_provider,
        "api_key": config.llm_api_key,
        "base_url": config.llm_base_url or PROVIDER_BASE_URLS.get(config.llm_provider, ""),
        "model": config.llm_model,
        "temperature": config.llm_temperature,
        "max_tokens": config.llm_max_tokens,
    }

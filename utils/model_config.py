"""
Model configuration and switching for question generation.
Centralized model management following DRY principle.
"""

import os
from typing import Dict, Any, Optional
from enum import Enum

from dotenv import load_dotenv

from utils.exceptions import ConfigurationError, ValidationError

load_dotenv()


class ModelProvider(str, Enum):
    OPENAI = "openai"
    GROQ = "groq"


# Model configurations
MODEL_CONFIGS: Dict[str, Dict[str, Any]] = {
    "llama-4-scout": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-scout-17b-16e-instruct",
        "max_tokens": 1000,
        "temperature": 0.7,
        "api_key_env": "GROQ_API_KEY",
    },
    "llama-4-maverick": {
        "provider": ModelProvider.GROQ,
        "model": "meta-llama/llama-4-maverick-17b-128e-instruct",
        "max_tokens": 1000,
        "temperature": 0.7,
        "api_key_env": "GROQ_API_KEY",
    },
    "gpt-4o-mini": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o-mini",
        "max_tokens": 1000,
        "temperature": 0.7,
        "api_key_env": "OPENAI_API_KEY",
    },
    "gpt-4o": {
        "provider": ModelProvider.OPENAI,
        "model": "gpt-4o",
        "max_tokens": 1000,
        "temperature": 0.7,
        "api_key_env": "OPENAI_API_KEY",
    },
}

DEFAULT_MODEL = os.getenv("GENERATION_MODEL", "llama-4-scout")


class ModelConfig:
    """Model configuration manager"""

    @staticmethod
    def get_config(model_key: Optional[str] = None) -> Dict[str, Any]:
        """Get configuration for specified model or default"""
        key = model_key or DEFAULT_MODEL

        if key not in MODEL_CONFIGS:
            raise ValidationError(
                f"Unknown model: {key}. Available: {ModelConfig.get_available_models()}",
                error_code="INVALID_MODEL",
                context={"model": key},
            )

        return MODEL_CONFIGS[key]

    @staticmethod
    def get_available_models() -> list:
        """List all available models"""
        return list(MODEL_CONFIGS.keys())

    @staticmethod
    def get_api_key(model_config: Dict[str, Any]) -> str:
        """
        Read the provider API key at request time.
        Raises ConfigurationError when it is unset, before any network call.
        """
        env_name = model_config["api_key_env"]
        api_key = os.getenv(env_name)
        if not api_key:
            raise ConfigurationError(
                "API key is not configured. Please check your environment variables.",
                error_code="API_KEY_MISSING",
                context={"env": env_name},
            )
        return api_key

"""
Security and Configuration Management
=====================================

Loads connection settings and secrets from the environment (optionally
seeded from a .env file) once per process.
"""

import os
import re
import threading
from typing import Optional, Dict, Any
from dataclasses import dataclass, asdict

from dotenv import load_dotenv

from citegraph.logging_config import Logger


logger = Logger(__name__)


@dataclass(frozen=True)
class Credentials:
    """Secrets for the external services"""
    neo4j_password: Optional[str] = None
    openai_api_key: Optional[str] = None
    chat_api_key: Optional[str] = None
    s2_api_key: Optional[str] = None


@dataclass(frozen=True)
class Settings:
    """Non-secret configuration"""
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_database: Optional[str] = None
    graph_connection_name: str = "neo4j"
    embedding_backend: str = "local"
    embedding_model: str = "all-MiniLM-L6-v2"
    embedding_dimensions: int = 384
    embedding_batch_size: int = 100
    chat_base_url: str = "https://api.deepseek.com"
    chat_model: str = "deepseek-chat"


class SecureConfig:
    """Configuration with secrets kept out of logs"""

    EMBEDDING_BACKENDS = ("local", "openai")
    DEFAULT_MODELS = {
        "local": "all-MiniLM-L6-v2",
        "openai": "text-embedding-3-small",
    }
    # Vector sizes of well-known models; anything else needs EMBEDDING_DIMENSIONS
    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-MiniLM-L12-v2": 384,
        "all-mpnet-base-v2": 768,
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(self, env_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """
        Args:
            env_file: Optional path to a .env file loaded before reading
            environ: Mapping to read instead of os.environ (tests)
        """
        if env_file and os.path.exists(env_file):
            load_dotenv(env_file)
            logger.info(f"Loaded configuration from {env_file}")

        env = os.environ if environ is None else environ
        backend = env.get("EMBEDDING_BACKEND", Settings.embedding_backend).lower()
        model = env.get("EMBEDDING_MODEL") or self.DEFAULT_MODELS.get(backend, Settings.embedding_model)
        dimensions = self._int(env, "EMBEDDING_DIMENSIONS", 0) or self.MODEL_DIMENSIONS.get(model, 0)

        self.credentials = Credentials(
            neo4j_password=env.get("NEO4J_PASSWORD"),
            openai_api_key=env.get("OPENAI_API_KEY"),
            chat_api_key=env.get("CHAT_API_KEY"),
            s2_api_key=env.get("S2_API_KEY"),
        )
        self.settings = Settings(
            neo4j_uri=env.get("NEO4J_URI", Settings.neo4j_uri),
            neo4j_user=env.get("NEO4J_USER", Settings.neo4j_user),
            neo4j_database=env.get("NEO4J_DATABASE") or None,
            graph_connection_name=env.get("GRAPH_CONNECTION_NAME", Settings.graph_connection_name),
            embedding_backend=backend,
            embedding_model=model,
            embedding_dimensions=dimensions,
            embedding_batch_size=self._int(env, "EMBEDDING_BATCH_SIZE", Settings.embedding_batch_size),
            chat_base_url=env.get("CHAT_BASE_URL", Settings.chat_base_url),
            chat_model=env.get("CHAT_MODEL", Settings.chat_model),
        )
        self._validate()

    @staticmethod
    def _int(env, key: str, default: int) -> int:
        raw = env.get(key)
        if raw is None or raw == "":
            return default
        try:
            return int(raw)
        except ValueError:
            raise ValueError(f"{key} must be an integer, got {raw!r}")

    def _validate(self):
        if self.settings.embedding_backend not in self.EMBEDDING_BACKENDS:
            raise ValueError(
                f"EMBEDDING_BACKEND must be one of {self.EMBEDDING_BACKENDS}, "
                f"got {self.settings.embedding_backend!r}"
            )
        if self.settings.embedding_batch_size <= 0:
            raise ValueError("EMBEDDING_BATCH_SIZE must be positive")
        if self.settings.embedding_dimensions <= 0:
            raise ValueError(
                f"EMBEDDING_DIMENSIONS must be set to a positive integer for "
                f"model {self.settings.embedding_model!r}"
            )
        if self.settings.embedding_backend == "openai" and not self.credentials.openai_api_key:
            logger.warning("OpenAI embedding backend selected but OPENAI_API_KEY is not set")
        if not self.credentials.neo4j_password:
            logger.warning("NEO4J_PASSWORD not configured")

    def summary(self) -> Dict[str, Any]:
        """Settings and credentials with secrets masked"""
        data = {
            **asdict(self.settings),
            "neo4j_password": self.credentials.neo4j_password,
            "openai_api_key": self.credentials.openai_api_key,
            "chat_api_key": self.credentials.chat_api_key,
            "s2_api_key": self.credentials.s2_api_key,
        }
        return SecretsMask.mask_dict(data)


class SecretsMask:
    """Utility for masking secrets in logs"""

    SENSITIVE_KEYS = [
        "api_key", "password", "secret", "token", "authorization", "x-api-key"
    ]
    MASK = "***MASKED***"

    @classmethod
    def mask_dict(cls, data: Dict[str, Any], depth: int = 0) -> Dict[str, Any]:
        """Recursively mask sensitive values in a dictionary"""
        if depth > 5:
            return data

        masked = {}
        for key, value in data.items():
            if cls._is_sensitive_key(key):
                masked[key] = cls.MASK if value else value
            elif isinstance(value, dict):
                masked[key] = cls.mask_dict(value, depth + 1)
            else:
                masked[key] = value
        return masked

    @classmethod
    def _is_sensitive_key(cls, key: str) -> bool:
        key_lower = key.lower()
        return any(sensitive in key_lower for sensitive in cls.SENSITIVE_KEYS)

    @classmethod
    def mask_string(cls, text: str) -> str:
        """Mask credentials embedded in free text (URIs, headers)"""
        patterns = [
            (r"api.?key[=:\s]+['\"]?([^'\"\s]+)['\"]?", cls.MASK),
            (r"password[=:\s]+['\"]?([^'\"\s]+)['\"]?", cls.MASK),
            (r"Bearer\s+\S+", f"Bearer {cls.MASK}"),
            (r"(\w+://[^:/\s]+:)[^@\s]+@", rf"\g<1>{cls.MASK}@"),
        ]
        masked = text
        for pattern, replacement in patterns:
            masked = re.sub(pattern, replacement, masked, flags=re.IGNORECASE)
        return masked


_config: Optional[SecureConfig] = None
_config_lock = threading.Lock()


def get_config(env_file: Optional[str] = ".env") -> SecureConfig:
    """Process-wide configuration, resolved on first call and reused after"""
    global _config
    with _config_lock:
        if _config is None:
            _config = SecureConfig(env_file=env_file)
            logger.info("Configuration resolved", operation="get_config")
            logger.debug(f"Configuration: {_config.summary()}")
        return _config

# chatcore/generator_config.py

"""
Backend identities, endpoint defaults and the resolved configuration the
generator factory consumes.

Nothing here reads the environment. Adapters and the factory import this
module only, so building a generator from an explicit `ContentGeneratorConfig`
never depends on how (or whether) `chatcore.config.Settings` validates.
"""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field, SecretStr

class AuthType(str, Enum):
    """
    Backend identities the factory knows how to build.
    """
    USE_GEMINI = "gemini-api-key"
    OLLAMA = "ollama"


DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

DEFAULT_MODELS: Dict[AuthType, str] = {
    AuthType.OLLAMA: "qwen3:1.7b",
    AuthType.USE_GEMINI: "gemini-2.5-pro",
}


class ContentGeneratorConfig(BaseModel):
    """
    Resolved configuration handed to the generator factory.

    Fields:
        backend (AuthType | str): Selected backend identity. Left as a plain string
            when it does not name a known backend, so the factory can reject it.
        model (str): Model identifier sent to the provider.
        base_url (str | None): Endpoint override; each adapter has its own default.
        api_key (SecretStr | None): Credential (ignored by the local backend).
        headers (Dict[str, str]): Extra HTTP headers sent with every request.
        timeout (float): Read/write timeout in seconds.
        connect_timeout (float): Connection timeout in seconds.
        incremental_streaming (bool): Forward true incremental chunks from the
            local backend instead of buffering the whole turn.
        embedding_model (str | None): Model used by `embed_content` where supported.
    """
    backend: AuthType | str
    model: str
    base_url: str | None = None
    api_key: SecretStr | None = None
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout: float = 120.0
    connect_timeout: float = 10.0
    incremental_streaming: bool = False
    embedding_model: str | None = None

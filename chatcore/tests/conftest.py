# chatcore/tests/conftest.py
import logging

import pytest

from chatcore.adapters.gemini_adapter import GeminiAdapter
from chatcore.adapters.ollama_adapter import OllamaAdapter
from chatcore.schemas import Content, GenerateContentRequest, Part, Role

OLLAMA_BASE = "http://localhost:11434"
GEMINI_BASE = "https://generativelanguage.googleapis.com/v1beta"
MODEL = "test-model"


def user(text: str) -> Content:
    return Content(role=Role.USER, parts=[Part(text=text)])


def model(text: str) -> Content:
    return Content(role=Role.MODEL, parts=[Part(text=text)])


def make_request(*contents: Content, **kwargs) -> GenerateContentRequest:
    return GenerateContentRequest(contents=list(contents), **kwargs)


@pytest.fixture
def ollama() -> OllamaAdapter:
    return OllamaAdapter(model_name=MODEL, base_url=OLLAMA_BASE)


@pytest.fixture
def ollama_incremental() -> OllamaAdapter:
    return OllamaAdapter(model_name=MODEL, base_url=OLLAMA_BASE, incremental_streaming=True)


@pytest.fixture
def gemini() -> GeminiAdapter:
    return GeminiAdapter(model_name="gemini-2.5-flash", api_key="test-key", base_url=GEMINI_BASE)


@pytest.fixture
def caplog_warning(caplog):
    caplog.set_level(logging.WARNING)
    return caplog

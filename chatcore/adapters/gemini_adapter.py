# chatcore/adapters/gemini_adapter.py

"""
Gemini adapter for chatcore.

Implements the `BaseContentGenerator` contract against Google's Gemini REST
API (`{base}/models/{model}:{method}`), talking to it directly via httpx:
- :generateContent           → single-shot generation
- :streamGenerateContent     → server-sent events, one response per `data:` line
- :countTokens               → exact token counts
- :batchEmbedContents        → embeddings

The canonical content model mirrors Gemini's own schema, so translation is
mostly serialisation. The one reshaping step: Gemini accepts only `user` and
`model` turns, so system-role turns are folded into `systemInstruction`.

🔐 Requires an API key (GEMINI_API_KEY), sent in the `x-goog-api-key` header.
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from chatcore.adapters.base import BaseContentGenerator, GeneratorCapabilities
from chatcore.exceptions import BackendError, GeneratorError, MalformedStreamFragment
from chatcore.generator_config import DEFAULT_GEMINI_API_BASE, ContentGeneratorConfig
from chatcore.schemas import (
    Content,
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    Part,
    Role,
)


logger = logging.getLogger("chatcore.adapters.gemini_adapter")

DEFAULT_EMBEDDING_MODEL = "gemini-embedding-001"

_MAX_ERROR_BODY = 500

ModelT = TypeVar("ModelT", bound=BaseModel)


def _dump(model: Any) -> Any:
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


def _raise_on_error_field(data: Dict[str, Any]) -> None:
    err = data.get("error")
    if not err:
        return
    if not isinstance(err, dict):
        err = {"message": str(err)}
    code = err.get("code")
    status_code = code if isinstance(code, int) else 500
    logger.error(f"[GeminiAdapter] provider error: {err}")
    raise BackendError("Gemini", status_code, str(err.get("status") or ""), str(err.get("message") or ""))


def _parse(model_cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """
    Validate a decoded Gemini body, mapping error payloads and unexpected
    shapes onto `BackendError`.
    """
    _raise_on_error_field(data)
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise BackendError("Gemini", 200, "unexpected response shape", str(e)[:_MAX_ERROR_BODY]) from e


def to_gemini_payload(request: GenerateContentRequest) -> Dict[str, Any]:
    """
    Serialise a canonical request into a `generateContent` body.

    Args:
        request (GenerateContentRequest): Canonical request.

    Returns:
        Dict[str, Any]: JSON-ready body with `contents`, and where present
        `systemInstruction`, `generationConfig` and `tools`.
    """
    system_parts: List[Part] = []
    if request.system_instruction is not None:
        system_parts.extend(request.system_instruction.parts)

    contents = []
    for content in request.contents:
        if content.role is Role.SYSTEM:
            system_parts.extend(content.parts)
            continue
        contents.append(_dump(content))

    payload: Dict[str, Any] = {"contents": contents}
    if system_parts:
        payload["systemInstruction"] = _dump(Content(parts=system_parts))

    generation_config = _dump(request.config)
    if generation_config:
        payload["generationConfig"] = generation_config
    if request.tools:
        payload["tools"] = request.tools
    return payload


class GeminiAdapter(BaseContentGenerator):
    """
    Adapter for Gemini models (gemini-2.5-pro, gemini-2.5-flash, ...).
    """

    backend_name = "Gemini"
    capabilities = GeneratorCapabilities(
        native_token_counting=True,
        embeddings=True,
        function_calling=True,
        native_structured_output=True,
        multimodal_input=True,
    )

    def __init__(
        self,
        model_name: str,
        api_key: str,
        base_url: str = DEFAULT_GEMINI_API_BASE,
        headers: Dict[str, str] | None = None,
        timeout: float = 120.0,
        connect_timeout: float = 10.0,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> None:
        super().__init__(model_name, base_url, {**(headers or {}), "x-goog-api-key": api_key}, timeout, connect_timeout)
        self.embedding_model = embedding_model

    def _url(self, model: str | None, method: str) -> str:
        model = (model or self.model_name).removeprefix("models/")
        return f"{self.base_url}/models/{model}:{method}"

    async def generate_content(self, request: GenerateContentRequest) -> GenerateContentResponse:
        """
        Perform a single-shot generation.

        Raises:
            BackendUnavailable: Gemini could not be reached.
            BackendError: Gemini returned a non-success status.
        """
        payload = to_gemini_payload(request)
        logger.debug(f"[GeminiAdapter] generate payload: model={request.model or self.model_name}, turns={len(payload['contents'])}")
        data = await self._post_json(self._url(request.model, "generateContent"), payload)
        return _parse(GenerateContentResponse, data)

    async def generate_content_stream(self, request: GenerateContentRequest) -> AsyncIterator[GenerateContentResponse]:
        """
        Stream a generation over server-sent events.

        Yields:
            GenerateContentResponse: One response per `data:` event, in order.
        """
        payload = to_gemini_payload(request)
        logger.debug(f"[GeminiAdapter] stream payload: model={request.model or self.model_name}, turns={len(payload['contents'])}")
        url = self._url(request.model, "streamGenerateContent")

        async with self._open_stream(url, payload, params={"alt": "sse"}) as resp:
            async for line in resp.aiter_lines():
                if not line.startswith("data:"):
                    continue
                body = line[len("data:"):].strip()
                try:
                    data = json.loads(body)
                except json.JSONDecodeError as e:
                    logger.warning(MalformedStreamFragment(body, e.msg).detail)
                    continue
                if not isinstance(data, dict):
                    logger.warning(MalformedStreamFragment(body, "not a JSON object").detail)
                    continue
                _raise_on_error_field(data)
                try:
                    response = GenerateContentResponse.model_validate(data)
                except ValidationError as e:
                    logger.warning(MalformedStreamFragment(body, f"{e.error_count()} validation error(s)").detail)
                    continue
                yield response

    async def count_tokens(self, request: GenerateContentRequest | str) -> CountTokensResponse:
        """
        Ask Gemini for the exact token count of a request or string.
        """
        if isinstance(request, str):
            request = GenerateContentRequest(contents=request)
        payload = {"contents": to_gemini_payload(request)["contents"]}
        data = await self._post_json(self._url(request.model, "countTokens"), payload)
        # zero-valued fields are omitted from Gemini JSON
        return _parse(CountTokensResponse, {"totalTokens": 0, **data})

    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        """
        Embed every content of the request with the configured embedding model.

        Returns:
            EmbedContentResponse: One embedding per input content, in order.
        """
        model = (request.model or self.embedding_model).removeprefix("models/")
        payload = {
            "requests": [
                {"model": f"models/{model}", "content": _dump(content)}
                for content in request.contents
            ]
        }
        logger.debug(f"[GeminiAdapter] embed payload: model={model}, inputs={len(request.contents)}")
        data = await self._post_json(self._url(model, "batchEmbedContents"), payload)
        return _parse(EmbedContentResponse, data)


def get_adapter(config: ContentGeneratorConfig) -> BaseContentGenerator:
    """
    Entry point for the generator factory.
    """
    if config.api_key is None or not config.api_key.get_secret_value():
        raise GeneratorError("Gemini backend selected but no API key is configured (set GEMINI_API_KEY)", status_code=401)
    return GeminiAdapter(
        model_name=config.model,
        api_key=config.api_key.get_secret_value(),
        base_url=config.base_url or DEFAULT_GEMINI_API_BASE,
        headers=config.headers,
        timeout=config.timeout,
        connect_timeout=config.connect_timeout,
        embedding_model=config.embedding_model or DEFAULT_EMBEDDING_MODEL,
    )

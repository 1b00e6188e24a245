# chatcore/adapters/base.py

"""
Defines `BaseContentGenerator`, the contract every model backend implements.

The chat orchestrator talks to this interface only. It offers four async
operations:
- Single-shot generation (`generate_content`)
- Streaming generation (`generate_content_stream`)
- Token counting (`count_tokens`)
- Embeddings (`embed_content`)

A backend that cannot perform an operation still implements it, either with
a documented estimate or by raising `CapabilityNotImplemented`, never by
returning wrong data. What a backend supports natively is advertised in
`capabilities`, so callers query flags instead of comparing backend names.

The base class also carries the HTTP plumbing shared by the adapters: one
short-lived `httpx.AsyncClient` per call, uniform timeouts and headers, and
the mapping of transport failures and non-2xx answers onto the chatcore
exception taxonomy.

🔁 Why use this abstraction?
- Callers never branch on backend identity after construction
- New providers plug in without touching orchestration code
- Adapters stay stateless: each call opens its own connection and parses into locals
"""

import platform
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict

import httpx

from chatcore import __version__
from chatcore.exceptions import BackendError, BackendUnavailable
from chatcore.schemas import (
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    GenerateContentRequest,
    GenerateContentResponse,
)

logger = logging.getLogger("chatcore.adapters.base")

USER_AGENT = f"chatcore/{__version__} ({platform.system().lower()}; python {platform.python_version()})"

_MAX_ERROR_BODY = 500


@dataclass(frozen=True)
class GeneratorCapabilities:
    """
    Feature flags a backend supports natively.

    `native_structured_output` is what the orchestrator checks before issuing
    extra JSON-mode round trips (e.g. a follow-up "who speaks next" check).
    """
    native_token_counting: bool = False
    embeddings: bool = False
    function_calling: bool = False
    native_structured_output: bool = False
    multimodal_input: bool = False


class BaseContentGenerator(ABC):
    """
    Abstract base class for all content generators.

    Each adapter wraps one provider API and exposes the same async surface.
    Instances hold immutable configuration only.
    """

    backend_name: str = "base"
    capabilities: GeneratorCapabilities = GeneratorCapabilities()

    def __init__(
        self,
        model_name: str,
        base_url: str,
        headers: Dict[str, str] | None = None,
        timeout: float = 120.0,
        connect_timeout: float = 10.0,
    ) -> None:
        """
        Args:
            model_name (str): Model identifier sent to the provider.
            base_url (str): Provider endpoint root, without trailing slash.
            headers (Dict[str, str] | None): Extra headers sent with every request.
            timeout (float): Read/write timeout in seconds.
            connect_timeout (float): Connection timeout in seconds.
        """
        self.model_name = model_name
        self.base_url = base_url.rstrip("/")
        self.headers = dict(headers or {})
        self.timeout = timeout
        self.connect_timeout = connect_timeout

    # ─── Contract ──────────────────────────────────────────────────────────────

    @abstractmethod
    async def generate_content(self, request: GenerateContentRequest) -> GenerateContentResponse:
        """
        Produce one complete answer.

        Raises:
            BackendUnavailable: The network call could not be made.
            BackendError: The provider answered with a non-success status.
        """
        ...

    @abstractmethod
    def generate_content_stream(self, request: GenerateContentRequest) -> AsyncIterator[GenerateContentResponse]:
        """
        Stream an answer as an ordered, finite, non-restartable sequence.

        Once the network call succeeds at least one response is yielded; the
        end of iteration marks the end of generation. Abandoning the iterator
        early (`aclose()`) releases the connection.

        Yields:
            GenerateContentResponse: Partial responses, then a terminal one.
        """
        ...

    @abstractmethod
    async def count_tokens(self, request: GenerateContentRequest | str) -> CountTokensResponse:
        """
        Count (or estimate) the tokens of a request or a bare string.
        """
        ...

    @abstractmethod
    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        """
        Embed one or more contents.

        Raises:
            CapabilityNotImplemented: The backend has no embedding support.
        """
        ...

    # ─── HTTP plumbing ─────────────────────────────────────────────────────────

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=self.connect_timeout),
            headers={"User-Agent": USER_AGENT, **self.headers},
        )

    async def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_success:
            return
        await resp.aread()
        body = resp.text[:_MAX_ERROR_BODY]
        logger.error(f"[{type(self).__name__}] {self.backend_name} returned {resp.status_code}: {body}")
        raise BackendError(self.backend_name, resp.status_code, resp.reason_phrase, body)

    def _unavailable(self, exc: httpx.TransportError) -> BackendUnavailable:
        logger.error(f"[{type(self).__name__}] {self.backend_name} unreachable at {self.base_url}: {exc!r}")
        return BackendUnavailable(f"{self.backend_name} backend unreachable at {self.base_url}: {exc}")

    async def _post_json(self, url: str, payload: Dict[str, Any], **kwargs: Any) -> Dict[str, Any]:
        """
        POST a JSON payload and return the decoded JSON body.
        """
        try:
            async with self._client() as client:
                resp = await client.post(url, json=payload, **kwargs)
                logger.info(f"[{type(self).__name__}] response status: {resp.status_code}")
                await self._raise_for_status(resp)
                try:
                    data = resp.json()
                except ValueError:
                    raise BackendError(
                        self.backend_name, resp.status_code, "invalid JSON body", resp.text[:_MAX_ERROR_BODY]
                    )
                if not isinstance(data, dict):
                    raise BackendError(
                        self.backend_name, resp.status_code, "unexpected JSON body", resp.text[:_MAX_ERROR_BODY]
                    )
                return data
        except httpx.TransportError as e:
            raise self._unavailable(e) from e

    @asynccontextmanager
    async def _open_stream(self, url: str, payload: Dict[str, Any], **kwargs: Any) -> AsyncIterator[httpx.Response]:
        """
        Open a streamed POST and yield the response once its status is known good.

        The connection is closed on every exit path: exhaustion, error, or the
        consumer abandoning the stream.
        """
        try:
            async with self._client() as client:
                async with client.stream("POST", url, json=payload, **kwargs) as resp:
                    logger.info(f"[{type(self).__name__}] stream response status: {resp.status_code}")
                    await self._raise_for_status(resp)
                    yield resp
        except httpx.TransportError as e:
            raise self._unavailable(e) from e

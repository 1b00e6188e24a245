# chatcore/adapters/ollama_adapter.py

"""
Ollama adapter for chatcore.

Implements the `BaseContentGenerator` contract on top of Ollama's REST API:
- POST /api/chat for chat completions (buffered or newline-delimited JSON stream)

Ollama serves open models locally and lacks several things the canonical
contract expects, so this adapter bridges the gaps:
- No token counting endpoint        → `count_tokens` is a character heuristic
- No embeddings through this path    → `embed_content` raises `CapabilityNotImplemented`
- No structured-output mode          → JSON is requested by instruction and extracted
- Reasoning models leak `<think>`    → every answer goes through the sanitizer
- Inconsistent `done` signalling     → natural end of stream counts as completion

🧠 Streaming: by default the whole turn is fetched with `stream=false`,
sanitised once and yielded as a single response, so a reasoning block can
never leak across chunk boundaries. With `incremental_streaming=True` the
adapter forwards real chunks through `ThinkingStreamFilter`, which withholds
text while a block is open.
"""

import json
import logging
import math
from contextlib import aclosing
from typing import Any, AsyncIterator, Dict, List

from chatcore.adapters.base import BaseContentGenerator, GeneratorCapabilities
from chatcore.exceptions import BackendError, CapabilityNotImplemented
from chatcore.generator_config import DEFAULT_OLLAMA_URL, ContentGeneratorConfig
from chatcore.ndjson import NDJSONDecoder
from chatcore.sanitizer import ThinkingStreamFilter, sanitize_response_text
from chatcore.schemas import (
    Candidate,
    Content,
    CountTokensResponse,
    EmbedContentRequest,
    EmbedContentResponse,
    FinishReason,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    Role,
    UsageMetadata,
)


logger = logging.getLogger("chatcore.adapters.ollama_adapter")

# Rough estimate: 4 characters per token. Never exact; callers sizing a
# context window against it should keep a margin.
CHARS_PER_TOKEN = 4

JSON_INSTRUCTION = (
    "Respond with valid JSON only. Do not include any explanation or other prose, "
    "do not wrap the JSON in Markdown code fences, and do not include <think> tags "
    "or any other reasoning markup. Output the raw JSON value and nothing else."
)

# canonical role → Ollama role, and back
_TO_OLLAMA_ROLE: Dict[Role, str] = {
    Role.USER: "user",
    Role.MODEL: "assistant",
    Role.SYSTEM: "system",
}
_FROM_OLLAMA_ROLE: Dict[str, Role] = {v: k for k, v in _TO_OLLAMA_ROLE.items()}

_DONE_REASONS: Dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "length": FinishReason.MAX_TOKENS,
}


# ─── Request translation ───────────────────────────────────────────────────────

def to_ollama_messages(request: GenerateContentRequest) -> List[Dict[str, str]]:
    """
    Translate a canonical request into Ollama chat messages.

    - The system instruction becomes one leading `system` message.
    - Turns map `model`→`assistant`, `user`→`user`, `system`→`system`, in order.
    - Only text parts are sent; images and function calls/responses are
      unsupported by this backend and are dropped.
    - Turns with no text are omitted.
    - With structured output requested, a pure-JSON instruction is appended
      to the last user message (or sent as a new user message if there is none).

    The function is pure: translating the same request twice yields equal lists.

    Args:
        request (GenerateContentRequest): Canonical request.

    Returns:
        List[Dict[str, str]]: `[{"role": ..., "content": ...}, ...]`
    """
    messages: List[Dict[str, str]] = []

    if request.system_instruction is not None:
        system_text = request.system_instruction.text
        if system_text:
            messages.append({"role": "system", "content": system_text})

    for content in request.contents:
        text = content.text
        if not text:
            continue
        role = _TO_OLLAMA_ROLE[content.role or Role.USER]
        messages.append({"role": role, "content": text})

    if request.config.wants_json:
        _append_json_instruction(messages, request.config)

    return messages


def _append_json_instruction(messages: List[Dict[str, str]], config: GenerationConfig) -> None:
    instruction = JSON_INSTRUCTION
    if config.response_schema is not None:
        schema = json.dumps(config.response_schema, separators=(",", ":"))
        instruction = f"{instruction} The JSON must conform to this JSON schema: {schema}"

    for message in reversed(messages):
        if message["role"] == "user":
            message["content"] = f"{message['content']}\n\n{instruction}"
            return
    messages.append({"role": "user", "content": instruction})


def _to_ollama_options(config: GenerationConfig) -> Dict[str, Any]:
    options = {
        "temperature": config.temperature,
        "top_p": config.top_p,
        "top_k": config.top_k,
        "num_predict": config.max_output_tokens,
        "stop": config.stop_sequences,
    }
    return {k: v for k, v in options.items() if v is not None}


def _request_text(request: GenerateContentRequest | str) -> str:
    if isinstance(request, str):
        return request
    texts = [c.text for c in request.contents]
    if request.system_instruction is not None:
        texts.insert(0, request.system_instruction.text)
    return "".join(texts)


# ─── Response translation ──────────────────────────────────────────────────────

def _usage_from(data: Dict[str, Any]) -> UsageMetadata | None:
    prompt = data.get("prompt_eval_count")
    output = data.get("eval_count")
    if prompt is None and output is None:
        return None
    return UsageMetadata(
        prompt_token_count=prompt,
        candidates_token_count=output,
        total_token_count=(prompt or 0) + (output or 0),
    )


def _finish_reason_from(data: Dict[str, Any]) -> FinishReason | None:
    if not data.get("done"):
        return None
    return _DONE_REASONS.get(data.get("done_reason") or "stop", FinishReason.STOP)


def _build_response(
    text: str,
    finish_reason: FinishReason | None,
    usage: UsageMetadata | None = None,
    model_version: str | None = None,
) -> GenerateContentResponse:
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role=Role.MODEL, parts=[Part(text=text)]),
                index=0,
                finish_reason=finish_reason,
            )
        ],
        usage_metadata=usage,
        model_version=model_version,
    )


def _raise_on_error_field(data: Dict[str, Any]) -> None:
    err = data.get("error")
    if isinstance(err, str) and err:
        logger.error(f"[OllamaAdapter] provider error: {err}")
        raise BackendError("Ollama", 200, "error in response body", err)


# ─── Adapter ───────────────────────────────────────────────────────────────────

class OllamaAdapter(BaseContentGenerator):
    """
    Adapter for models served by a local Ollama instance.
    """

    backend_name = "Ollama"
    capabilities = GeneratorCapabilities()

    def __init__(
        self,
        model_name: str,
        base_url: str = DEFAULT_OLLAMA_URL,
        headers: Dict[str, str] | None = None,
        timeout: float = 120.0,
        connect_timeout: float = 10.0,
        incremental_streaming: bool = False,
    ) -> None:
        super().__init__(model_name, base_url, headers, timeout, connect_timeout)
        self.incremental_streaming = incremental_streaming

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    def _payload(self, request: GenerateContentRequest, stream: bool) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model or self.model_name,
            "messages": to_ollama_messages(request),
            "stream": stream,
        }
        options = _to_ollama_options(request.config)
        if options:
            payload["options"] = options
        logger.debug(
            f"[OllamaAdapter] chat payload: model={payload['model']}, "
            f"messages={len(payload['messages'])}, stream={stream}, options={options}"
        )
        return payload

    async def generate_content(self, request: GenerateContentRequest) -> GenerateContentResponse:
        """
        Request one buffered answer (`stream=false`) and translate it.

        Returns:
            GenerateContentResponse: One candidate with the sanitised text; finish
            reason set only if Ollama reported `done`.
        """
        data = await self._post_json(self.chat_url, self._payload(request, stream=False))
        _raise_on_error_field(data)

        message = data.get("message") or {}
        raw = message.get("content") or ""
        if not isinstance(raw, str):
            raise BackendError("Ollama", 200, "unexpected message content", repr(raw)[:200])
        if message.get("role") and message["role"] not in _FROM_OLLAMA_ROLE:
            logger.warning(f"[OllamaAdapter] unexpected message role {message['role']!r}")

        text = sanitize_response_text(raw, json_mode=request.config.wants_json)
        return _build_response(text, _finish_reason_from(data), _usage_from(data), data.get("model"))

    async def generate_content_stream(self, request: GenerateContentRequest) -> AsyncIterator[GenerateContentResponse]:
        """
        Stream an answer.

        Reference mode yields exactly one fully sanitised response. Incremental
        mode yields sanitised partial chunks (finish reason unset) followed by
        one terminal response.
        """
        if not self.incremental_streaming:
            yield await self.generate_content(request)
            return

        async with aclosing(self._stream_incremental(request)) as stream:
            async for response in stream:
                yield response

    async def _stream_incremental(self, request: GenerateContentRequest) -> AsyncIterator[GenerateContentResponse]:
        json_mode = request.config.wants_json
        decoder = NDJSONDecoder()
        visible = ThinkingStreamFilter()
        raw_parts: List[str] = []
        final: Dict[str, Any] = {}

        async with self._open_stream(self.chat_url, self._payload(request, stream=True)) as resp:
            async for chunk in resp.aiter_bytes():
                for fragment in decoder.feed(chunk):
                    text = self._consume_fragment(fragment, final)
                    if json_mode:
                        raw_parts.append(text)
                        continue
                    shown = visible.feed(text)
                    if shown:
                        yield _build_response(shown, None, model_version=fragment.get("model"))

            for fragment in decoder.flush():
                text = self._consume_fragment(fragment, final)
                if json_mode:
                    raw_parts.append(text)
                else:
                    shown = visible.feed(text)
                    if shown:
                        yield _build_response(shown, None, model_version=fragment.get("model"))

        if decoder.skipped:
            logger.info(f"[OllamaAdapter] skipped {decoder.skipped} malformed stream fragment(s)")

        if json_mode:
            tail = sanitize_response_text("".join(raw_parts), json_mode=True)
        else:
            tail = visible.finish()

        # the stream ending is itself authoritative completion
        finish_reason = _finish_reason_from(final) or FinishReason.STOP
        yield _build_response(tail, finish_reason, _usage_from(final), final.get("model"))

    @staticmethod
    def _consume_fragment(fragment: Dict[str, Any], final: Dict[str, Any]) -> str:
        _raise_on_error_field(fragment)
        if fragment.get("done"):
            final.update(fragment)
        message = fragment.get("message") or {}
        text = message.get("content") or ""
        return text if isinstance(text, str) else ""

    async def count_tokens(self, request: GenerateContentRequest | str) -> CountTokensResponse:
        """
        Estimate tokens as ceil(characters / 4) of the request's text.

        Ollama has no counting endpoint; this never touches the network and is
        an estimate only.
        """
        text = _request_text(request)
        return CountTokensResponse(total_tokens=math.ceil(len(text) / CHARS_PER_TOKEN))

    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        raise CapabilityNotImplemented("Ollama", "embed_content")


def get_adapter(config: ContentGeneratorConfig) -> BaseContentGenerator:
    """
    Entry point for the generator factory.
    """
    return OllamaAdapter(
        model_name=config.model,
        base_url=config.base_url or DEFAULT_OLLAMA_URL,
        headers=config.headers,
        timeout=config.timeout,
        connect_timeout=config.connect_timeout,
        incremental_streaming=config.incremental_streaming,
    )

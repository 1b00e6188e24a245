# chatcore/tests/test_main.py
import io

import pytest

from chatcore.adapters.base import BaseContentGenerator, GeneratorCapabilities
from chatcore.exceptions import BackendUnavailable, CapabilityNotImplemented
import chatcore.main
from chatcore.config import Settings
from chatcore.main import describe_context, main, run_turn
from chatcore.schemas import (
    Candidate,
    Content,
    CountTokensResponse,
    FinishReason,
    GenerateContentResponse,
    Part,
    Role,
)

from conftest import model, user


def _chunk(text: str, finish: FinishReason | None = None) -> GenerateContentResponse:
    return GenerateContentResponse(
        candidates=[Candidate(content=Content(role=Role.MODEL, parts=[Part(text=text)]), finish_reason=finish)]
    )


class ScriptedGenerator(BaseContentGenerator):
    """Replays canned chunks and records every request it receives."""

    backend_name = "Scripted"
    capabilities = GeneratorCapabilities()

    def __init__(self, chunks=None, error=None):
        super().__init__("scripted", "http://unused")
        self.chunks = chunks or []
        self.error = error
        self.requests = []

    async def generate_content(self, request):
        raise CapabilityNotImplemented(self.backend_name, "generate_content")

    async def generate_content_stream(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        for chunk in self.chunks:
            yield chunk

    async def count_tokens(self, request):
        return CountTokensResponse(total_tokens=len(request.contents) * 10)

    async def embed_content(self, request):
        raise CapabilityNotImplemented(self.backend_name, "embed_content")


@pytest.mark.asyncio
async def test_run_turn_streams_and_extends_history():
    generator = ScriptedGenerator([_chunk("Hello"), _chunk(" there", FinishReason.STOP)])
    history = [user("earlier"), model("reply")]
    out = io.StringIO()

    turn = await run_turn(generator, history, "hi", out=out, system_prompt="sys")

    assert out.getvalue() == "Hello there\n"
    assert turn.text == "Hello there"
    assert [c.text for c in history] == ["earlier", "reply", "hi", "Hello there"]

    request = generator.requests[0]
    assert [c.text for c in request.contents] == ["earlier", "reply", "hi"]
    assert request.system_instruction.text == "sys"


@pytest.mark.asyncio
async def test_run_turn_reports_abnormal_finish():
    generator = ScriptedGenerator([_chunk("cut off", FinishReason.MAX_TOKENS)])
    out = io.StringIO()
    await run_turn(generator, [], "q", out=out)
    assert "[finished: MAX_TOKENS]" in out.getvalue()


@pytest.mark.asyncio
async def test_run_turn_renders_error_and_keeps_history():
    generator = ScriptedGenerator(error=BackendUnavailable("Ollama backend unreachable at http://localhost:11434"))
    history = [user("earlier"), model("reply")]
    out = io.StringIO()

    assert await run_turn(generator, history, "hi", out=out) is None
    assert "[error] Ollama backend unreachable" in out.getvalue()
    assert len(history) == 2


@pytest.mark.asyncio
async def test_describe_context():
    generator = ScriptedGenerator()
    assert await describe_context(generator, []) == "empty conversation"
    assert await describe_context(generator, [user("a"), model("b")]) == "2 turns, 20 tokens (estimated)"


def test_main_reports_unknown_backend(monkeypatch, capsys):
    monkeypatch.setenv("LLM_BACKEND", "vertex-ai")
    monkeypatch.setattr(chatcore.main, "settings", Settings(_env_file=None))
    monkeypatch.setattr(chatcore.main, "configure_logging", lambda level: None)

    with pytest.raises(SystemExit) as exc:
        main()

    assert exc.value.code == 2
    assert "[error] Unsupported backend: 'vertex-ai'" in capsys.readouterr().err

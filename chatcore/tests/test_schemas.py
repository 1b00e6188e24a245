# chatcore/tests/test_schemas.py
import pydantic
import pytest

from chatcore.schemas import (
    Content,
    FinishReason,
    FunctionCall,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerationConfig,
    Part,
    Role,
)


def test_part_rejects_two_payload_kinds():
    with pytest.raises(pydantic.ValidationError, match="exactly one payload"):
        Part(text="hi", function_call=FunctionCall(name="ls"))


def test_part_accepts_camel_case_wire_names():
    part = Part.model_validate({"functionCall": {"name": "ls", "args": {"path": "."}}})
    assert part.function_call.args == {"path": "."}


def test_content_text_skips_thoughts_and_non_text():
    content = Content(
        role=Role.MODEL,
        parts=[
            Part(text="reasoning", thought=True),
            Part(text="Hello "),
            Part(function_call=FunctionCall(name="ls")),
            Part(text="world"),
        ],
    )
    assert content.text == "Hello world"


def test_request_coerces_strings_and_is_frozen():
    request = GenerateContentRequest(contents="Hello", system_instruction="Be brief.")
    assert request.contents == [Content(role=Role.USER, parts=[Part(text="Hello")])]
    assert request.system_instruction.role is Role.SYSTEM
    assert request.config == GenerationConfig()
    with pytest.raises(pydantic.ValidationError):
        request.model = "other"


def test_request_order_is_preserved():
    turns = [Content(role=Role.USER if i % 2 == 0 else Role.MODEL, parts=[Part(text=str(i))]) for i in range(6)]
    request = GenerateContentRequest(contents=turns)
    assert [c.text for c in request.contents] == ["0", "1", "2", "3", "4", "5"]


@pytest.mark.parametrize(
    "config, expected",
    [
        (GenerationConfig(), False),
        (GenerationConfig(response_mime_type="text/plain"), False),
        (GenerationConfig(response_mime_type="application/json"), True),
        (GenerationConfig(response_schema={"type": "object"}), True),
    ],
)
def test_wants_json(config, expected):
    assert config.wants_json is expected


def test_finish_reason_unknown_values_become_other():
    assert FinishReason("STOP") is FinishReason.STOP
    assert FinishReason("BRAND_NEW_REASON") is FinishReason.OTHER


def test_response_accessors():
    response = GenerateContentResponse.model_validate(
        {"candidates": [{"content": {"role": "model", "parts": [{"text": "ok"}]}, "finishReason": "MAX_TOKENS"}]}
    )
    assert response.text == "ok"
    assert response.finish_reason is FinishReason.MAX_TOKENS
    assert GenerateContentResponse().text is None
    assert GenerateContentResponse().finish_reason is None

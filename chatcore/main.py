# chatcore/main.py

"""
Minimal interactive entry point for chatcore.

Wires the pieces together the way the full assistant does:
- Settings → resolved generator config → factory → content generator
- One streamed turn per user line, with the whole history re-sent every time
- Generator errors rendered as messages instead of ending the session

Terminal rendering is plain `print`; the real UI lives outside this package.
"""

import asyncio
import logging
import sys
from typing import List, TextIO

from chatcore.adapters import BaseContentGenerator, create_content_generator
from chatcore.config import settings
from chatcore.exceptions import GeneratorError
from chatcore.logging_config import configure_logging
from chatcore.schemas import Content, FinishReason, GenerateContentRequest, Part, Role

logger = logging.getLogger("chatcore.main")

SYSTEM_PROMPT = "You are a concise, helpful command-line assistant."


async def run_turn(
    generator: BaseContentGenerator,
    history: List[Content],
    user_text: str,
    out: TextIO = sys.stdout,
    system_prompt: str = SYSTEM_PROMPT,
) -> Content | None:
    """
    Send one user turn with the full history and stream the answer to `out`.

    The user turn and the model's answer are appended to `history` only when
    the call succeeds; on a generator error the message is written to `out`
    and history is left as it was.

    Args:
        generator (BaseContentGenerator): Any backend.
        history (List[Content]): Conversation so far; updated in place on success.
        user_text (str): The new user message.
        out (TextIO): Where the answer (or error) is written.
        system_prompt (str): System instruction sent with every call.

    Returns:
        Content | None: The model turn, or None if the call failed.
    """
    user_turn = Content(role=Role.USER, parts=[Part(text=user_text)])
    request = GenerateContentRequest(
        contents=[*history, user_turn],
        system_instruction=system_prompt,
    )

    chunks: List[str] = []
    finish_reason = None
    try:
        async for response in generator.generate_content_stream(request):
            text = response.text or ""
            if text:
                chunks.append(text)
                out.write(text)
                out.flush()
            finish_reason = response.finish_reason or finish_reason
    except GeneratorError as e:
        logger.error(f"[main] generation failed: {e.detail}")
        out.write(f"\n[error] {e.detail}\n")
        return None

    out.write("\n")
    if finish_reason is not None and finish_reason is not FinishReason.STOP:
        out.write(f"[finished: {finish_reason.value}]\n")

    model_turn = Content(role=Role.MODEL, parts=[Part(text="".join(chunks))])
    history.extend([user_turn, model_turn])
    return model_turn


async def describe_context(generator: BaseContentGenerator, history: List[Content]) -> str:
    """
    One-line summary of the conversation size, for the `/tokens` command.
    """
    if not history:
        return "empty conversation"
    counted = await generator.count_tokens(GenerateContentRequest(contents=history))
    kind = "tokens" if generator.capabilities.native_token_counting else "tokens (estimated)"
    return f"{len(history)} turns, {counted.total_tokens} {kind}"


async def chat_loop(generator: BaseContentGenerator) -> None:
    history: List[Content] = []
    while True:
        try:
            line = await asyncio.to_thread(input, "> ")
        except EOFError:
            return
        line = line.strip()
        if not line:
            continue
        if line in ("/quit", "/exit"):
            return
        if line == "/tokens":
            try:
                print(await describe_context(generator, history))
            except GeneratorError as e:
                print(f"[error] {e.detail}")
            continue
        await run_turn(generator, history, line)


def main() -> None:
    """
    Console entry point: configure logging, build the generator, chat until EOF.
    """
    configure_logging(settings.log_level)
    try:
        generator = create_content_generator(settings.generator_config())
    except GeneratorError as e:
        print(f"[error] {e.detail}", file=sys.stderr)
        raise SystemExit(2)

    try:
        asyncio.run(chat_loop(generator))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

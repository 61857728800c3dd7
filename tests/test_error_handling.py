import asyncio
from types import SimpleNamespace

import structlog

from betlink.bot.handlers.errors import handle_errors
from betlink.logging_setup import build_renderer
from betlink.services.conversation import UNEXPECTED_ERROR_REPLY


class RecordingMessage:
    def __init__(self) -> None:
        self.from_user = SimpleNamespace(id=42)
        self.answers: list[str] = []

    async def answer(self, text: str) -> None:
        self.answers.append(text)


def _event(message: RecordingMessage | None, exception: Exception) -> SimpleNamespace:
    return SimpleNamespace(
        update=SimpleNamespace(update_id=7, message=message),
        exception=exception,
    )


def test_unhandled_exception_is_swallowed_and_user_gets_apology() -> None:
    message = RecordingMessage()

    handled = asyncio.run(handle_errors(_event(message, RuntimeError("boom")), structlog.get_logger("tests")))

    assert handled is True
    assert message.answers == [UNEXPECTED_ERROR_REPLY]


def test_update_without_message_is_only_logged() -> None:
    assert asyncio.run(handle_errors(_event(None, RuntimeError("boom")), structlog.get_logger("tests"))) is True


def test_renderer_follows_log_format() -> None:
    assert isinstance(build_renderer("json"), structlog.processors.JSONRenderer)
    assert isinstance(build_renderer("console"), structlog.dev.ConsoleRenderer)

"""Last-resort handler for exceptions raised while delivering replies."""

from __future__ import annotations

from aiogram import Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types.error_event import ErrorEvent
from structlog.stdlib import BoundLogger

from betlink.services.conversation import UNEXPECTED_ERROR_REPLY

router = Router(name=__name__)


@router.error()
async def handle_errors(event: ErrorEvent, app_logger: BoundLogger) -> bool:
    message = event.update.message
    sender = message.from_user if message is not None else None

    app_logger.error(
        "unhandled_update_exception",
        update_id=event.update.update_id,
        user_id=str(sender.id) if sender is not None else None,
        error=str(event.exception),
        exc_info=event.exception,
    )

    if message is not None and not isinstance(event.exception, TelegramAPIError):
        try:
            await message.answer(UNEXPECTED_ERROR_REPLY)
        except TelegramAPIError:
            app_logger.warning("error_reply_failed", update_id=event.update.update_id)
    return True

"""Free-text handler: pasted affiliate links, bet-slip links and slip codes."""

from __future__ import annotations

import structlog
from aiogram import F, Router
from aiogram.types import Message

from betlink.services.conversation import ConversationService

router = Router(name=__name__)


@router.message(F.text)
async def handle_text(message: Message, link_flow: ConversationService) -> None:
    if message.from_user is None or message.text is None:
        return

    user_id = str(message.from_user.id)
    with structlog.contextvars.bound_contextvars(chat_id=message.chat.id):
        reply = await link_flow.handle_text(user_id, message.text)
        await message.answer(reply)

"""Command handlers bound to the link-building flow."""

from __future__ import annotations

import structlog
from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import BotCommand, Message

from betlink.constants import DEFAULT_COMMAND_TRIGGERS
from betlink.services.conversation import ConversationService
from betlink.services.types import FlowCommand

router = Router(name=__name__)

COMMAND_DESCRIPTIONS = {
    FlowCommand.BEGIN_SETUP: "configurar link",
    FlowCommand.CHANGE_AFFILIATE: "trocar link de afiliado",
    FlowCommand.REQUEST_BET: "gerar link do bilhete",
    FlowCommand.SHOW_CONFIG: "ver cadastro",
    FlowCommand.RESET: "apagar cadastro",
    FlowCommand.HELP: "ajuda",
}


def build_bot_commands() -> list[BotCommand]:
    return [
        BotCommand(command=DEFAULT_COMMAND_TRIGGERS[command.value], description=description)
        for command, description in COMMAND_DESCRIPTIONS.items()
    ]


async def answer_command(message: Message, link_flow: ConversationService, command: FlowCommand) -> None:
    if message.from_user is None:
        return

    with structlog.contextvars.bound_contextvars(chat_id=message.chat.id):
        reply = await link_flow.handle_command(str(message.from_user.id), command)
        await message.answer(reply)


@router.message(CommandStart())
async def handle_start(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.BEGIN_SETUP)


@router.message(Command(DEFAULT_COMMAND_TRIGGERS[FlowCommand.CHANGE_AFFILIATE.value]))
async def handle_change_affiliate(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.CHANGE_AFFILIATE)


@router.message(Command(DEFAULT_COMMAND_TRIGGERS[FlowCommand.REQUEST_BET.value]))
async def handle_request_bet(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.REQUEST_BET)


@router.message(Command(DEFAULT_COMMAND_TRIGGERS[FlowCommand.SHOW_CONFIG.value]))
async def handle_show_config(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.SHOW_CONFIG)


@router.message(Command(DEFAULT_COMMAND_TRIGGERS[FlowCommand.RESET.value]))
async def handle_reset(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.RESET)


@router.message(Command(DEFAULT_COMMAND_TRIGGERS[FlowCommand.HELP.value]))
async def handle_help(message: Message, link_flow: ConversationService) -> None:
    await answer_command(message, link_flow, FlowCommand.HELP)

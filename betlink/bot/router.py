"""Router assembly."""

from aiogram import Router

from betlink.bot.handlers import commands, errors, messages


def build_router() -> Router:
    router = Router(name="root")
    router.include_router(commands.router)
    router.include_router(messages.router)
    router.include_router(errors.router)
    return router

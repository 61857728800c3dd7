"""Webhook application entrypoint."""

from __future__ import annotations

import asyncio
from contextlib import suppress

from aiohttp import web
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.exceptions import TelegramAPIError
from aiogram.webhook.aiohttp_server import SimpleRequestHandler, setup_application

from betlink.bot.handlers.commands import build_bot_commands
from betlink.bot.router import build_router
from betlink.config import Settings, get_settings
from betlink.logging_setup import configure_logging, get_logger
from betlink.repositories.sessions import create_session_store
from betlink.services.conversation import ConversationService
from betlink.web.health import healthz, readyz


def create_app(settings: Settings) -> web.Application:
    configure_logging(settings.log_level, settings.log_format)
    logger = get_logger("betlink")

    session_store = create_session_store(settings, logger)
    link_flow = ConversationService(session_store, logger)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(link_preview_is_disabled=True))

    dispatcher = Dispatcher()
    dispatcher.include_router(build_router())
    dispatcher.workflow_data.update(
        {
            "link_flow": link_flow,
            "settings": settings,
            "app_logger": logger,
        }
    )

    app = web.Application()
    app["session_store"] = session_store
    app["polling_task"] = None

    async def on_startup(application: web.Application) -> None:
        try:
            await bot.set_my_commands(build_bot_commands())
        except TelegramAPIError:
            logger.warning("set_my_commands_failed")

        if settings.skip_webhook_setup:
            try:
                await bot.delete_webhook(drop_pending_updates=False)
            except TelegramAPIError:
                logger.warning("delete_webhook_failed_before_long_polling")

            polling_task = asyncio.create_task(
                dispatcher.start_polling(
                    bot,
                    allowed_updates=dispatcher.resolve_used_update_types(),
                    handle_signals=False,
                )
            )
            application["polling_task"] = polling_task
            logger.warning("webhook_setup_skipped_for_local_mode")
            logger.info("long_polling_started")
            return

        await bot.set_webhook(
            url=settings.webhook_url,
            secret_token=settings.resolved_webhook_secret,
            allowed_updates=dispatcher.resolve_used_update_types(),
        )
        logger.info("webhook_configured", webhook_url=settings.webhook_url)

    async def on_shutdown(application: web.Application) -> None:
        if settings.skip_webhook_setup:
            polling_task = application.get("polling_task")
            if polling_task is not None and not polling_task.done():
                polling_task.cancel()
                with suppress(asyncio.CancelledError):
                    await polling_task
                logger.info("long_polling_stopped")
        else:
            try:
                await bot.delete_webhook(drop_pending_updates=False)
            except TelegramAPIError:
                logger.warning("webhook_delete_failed")

        await bot.session.close()
        await session_store.close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_shutdown)

    app.router.add_get("/healthz", healthz)
    app.router.add_get("/readyz", readyz)

    webhook_handler = SimpleRequestHandler(
        dispatcher=dispatcher,
        bot=bot,
        secret_token=settings.resolved_webhook_secret,
    )
    webhook_handler.register(app, path="/webhook")
    setup_application(app, dispatcher, bot=bot)

    return app


def main() -> None:
    settings = get_settings()
    app = create_app(settings)
    web.run_app(app, host=settings.app_host, port=settings.app_port)


if __name__ == "__main__":
    main()

"""Conversation flow that turns affiliate and bet-slip input into tracking links.

Every inbound message is handled to completion: load the user's session,
dispatch on its state, persist the new state, then return the reply text.
Reply delivery is left to the transport, after the session is saved.
"""

from __future__ import annotations

from collections.abc import Mapping

from structlog.stdlib import BoundLogger

from betlink.constants import DEFAULT_COMMAND_TRIGGERS, EXAMPLE_AFFILIATE_LINK, EXAMPLE_BET_SLIP_LINK
from betlink.db.enums import ConversationState
from betlink.repositories.sessions import SessionStore
from betlink.services.affiliate_parser import looks_like_affiliate_link, parse_affiliate_link
from betlink.services.bet_parser import looks_like_bet_reference, parse_bet_reference
from betlink.services.link_builder import build_tracking_link
from betlink.services.types import AffiliateParams, FlowCommand, LinkError, UserSession

AFFILIATE_HINT = "(wlsuperbet.../C.ashx?...)"
UNEXPECTED_ERROR_REPLY = "⚠️ Algo deu errado ao processar sua mensagem. Tente novamente em instantes."


def format_affiliate_summary(affiliate: AffiliateParams) -> str:
    return (
        f"siteid: {affiliate.site_id}\n"
        f"affid: {affiliate.aff_id}\n"
        f"adid: {affiliate.ad_id}\n"
        f"c: {affiliate.c}"
    )


class ConversationService:
    def __init__(
        self,
        store: SessionStore,
        logger: BoundLogger,
        triggers: Mapping[str, str] | None = None,
    ) -> None:
        self._store = store
        self._logger = logger
        self._triggers = dict(DEFAULT_COMMAND_TRIGGERS if triggers is None else triggers)

    def trigger(self, command: FlowCommand) -> str:
        return f"/{self._triggers[command.value]}"

    def format_error(self, error: LinkError) -> str:
        return f"❌ {error.message}\n\nUse {self.trigger(FlowCommand.RESET)} se quiser recomeçar."

    def format_help(self) -> str:
        return (
            "📌 Comandos:\n"
            f"{self.trigger(FlowCommand.BEGIN_SETUP)} - configurar link\n"
            f"{self.trigger(FlowCommand.CHANGE_AFFILIATE)} - trocar link de afiliado\n"
            f"{self.trigger(FlowCommand.REQUEST_BET)} - gerar link do bilhete\n"
            f"{self.trigger(FlowCommand.SHOW_CONFIG)} - ver cadastro\n"
            f"{self.trigger(FlowCommand.RESET)} - apagar cadastro\n"
            f"{self.trigger(FlowCommand.HELP)} - mostrar esta ajuda\n\n"
            "Você também pode só colar o link de afiliado, o link do bilhete "
            "ou o código do bilhete aqui no chat."
        )

    async def handle_command(self, user_id: str, command: FlowCommand) -> str:
        try:
            return await self._dispatch_command(user_id, command)
        except Exception:
            self._logger.exception("command_handling_failed", user_id=user_id, command=command.value)
            return UNEXPECTED_ERROR_REPLY

    async def handle_text(self, user_id: str, text: str) -> str:
        try:
            return await self._dispatch_text(user_id, text.strip())
        except Exception:
            self._logger.exception("message_handling_failed", user_id=user_id)
            return UNEXPECTED_ERROR_REPLY

    async def _transition(self, session: UserSession, state: ConversationState) -> None:
        previous = session.state
        session.state = state
        await self._store.save(session)
        if previous != state:
            self._logger.info(
                "conversation_state_changed",
                user_id=session.user_id,
                from_state=previous.value,
                to_state=state.value,
            )

    async def _dispatch_command(self, user_id: str, command: FlowCommand) -> str:
        if command is FlowCommand.HELP:
            return self.format_help()

        if command is FlowCommand.RESET:
            await self._store.reset(user_id)
            self._logger.info("session_reset", user_id=user_id)
            return f"✅ Resetado. Use {self.trigger(FlowCommand.BEGIN_SETUP)} para configurar de novo."

        session = await self._store.get(user_id)

        if command is FlowCommand.BEGIN_SETUP:
            await self._transition(session, ConversationState.AWAITING_AFFILIATE_LINK)
            return (
                "✅ Vamos configurar seu link.\n\n"
                f"1) Me envie agora seu LINK DE AFILIADO {AFFILIATE_HINT}\n"
                "Exemplo:\n"
                f"{EXAMPLE_AFFILIATE_LINK}"
            )

        if command is FlowCommand.CHANGE_AFFILIATE:
            await self._transition(session, ConversationState.AWAITING_AFFILIATE_LINK)
            return f"Beleza. Me envie seu LINK DE AFILIADO agora {AFFILIATE_HINT}."

        if command is FlowCommand.REQUEST_BET:
            if session.affiliate is None:
                await self._transition(session, ConversationState.AWAITING_AFFILIATE_LINK)
                return f"Antes preciso do seu link de afiliado.\nMe envie o link {AFFILIATE_HINT}."

            await self._transition(session, ConversationState.AWAITING_BET_REFERENCE)
            return f"Agora me envie o LINK DO BILHETE (ou só o código):\n{EXAMPLE_BET_SLIP_LINK}"

        if command is FlowCommand.SHOW_CONFIG:
            if session.affiliate is None:
                return (
                    "Você ainda não configurou seu link. Use "
                    f"{self.trigger(FlowCommand.BEGIN_SETUP)} ou {self.trigger(FlowCommand.CHANGE_AFFILIATE)}."
                )
            return (
                "✅ Seu cadastro atual:\n"
                f"{format_affiliate_summary(session.affiliate)}\n\n"
                f"Para trocar, use {self.trigger(FlowCommand.CHANGE_AFFILIATE)}."
            )

        raise ValueError(f"Unsupported command: {command!r}")

    async def _dispatch_text(self, user_id: str, text: str) -> str:
        session = await self._store.get(user_id)

        if session.state is ConversationState.AWAITING_AFFILIATE_LINK:
            return await self._capture_affiliate(session, text, guided=True)

        if session.state is ConversationState.AWAITING_BET_REFERENCE:
            if session.affiliate is None:
                self._logger.warning("inconsistent_session_corrected", user_id=user_id)
                await self._transition(session, ConversationState.AWAITING_AFFILIATE_LINK)
                return f"Me envie primeiro seu link de afiliado {AFFILIATE_HINT}."
            return await self._resolve_bet(session, text, next_state=ConversationState.IDLE)

        if looks_like_affiliate_link(text):
            return await self._capture_affiliate(session, text, guided=False)

        if looks_like_bet_reference(text):
            if session.affiliate is None:
                await self._transition(session, ConversationState.AWAITING_AFFILIATE_LINK)
                return (
                    "Antes configure seu link de afiliado:\n"
                    f"Use {self.trigger(FlowCommand.BEGIN_SETUP)} ou cole seu link {AFFILIATE_HINT}"
                )
            return await self._resolve_bet(session, text, next_state=session.state)

        return f"Não entendi. Use {self.trigger(FlowCommand.HELP)}."

    async def _capture_affiliate(self, session: UserSession, text: str, *, guided: bool) -> str:
        result = parse_affiliate_link(text)
        if isinstance(result, LinkError):
            self._logger.info(
                "affiliate_link_rejected",
                user_id=session.user_id,
                reason=result.kind.value,
                field=result.field,
            )
            return self.format_error(result)

        session.affiliate = result
        await self._transition(session, ConversationState.AWAITING_BET_REFERENCE)
        self._logger.info("affiliate_saved", user_id=session.user_id, site_id=result.site_id, ad_id=result.ad_id)

        if not guided:
            return "✅ Link de afiliado salvo! Agora mande o LINK DO BILHETE."
        return (
            "✅ Link de afiliado salvo!\n"
            f"{format_affiliate_summary(result)}\n\n"
            "Agora me envie o LINK DO BILHETE (ou só o código):\n"
            f"{EXAMPLE_BET_SLIP_LINK}"
        )

    async def _resolve_bet(self, session: UserSession, text: str, *, next_state: ConversationState) -> str:
        assert session.affiliate is not None
        result = parse_bet_reference(text)
        if isinstance(result, LinkError):
            self._logger.info("bet_reference_rejected", user_id=session.user_id, reason=result.kind.value)
            return self.format_error(result)

        tracking_link = build_tracking_link(session.affiliate, result.resolved_url)
        await self._transition(session, next_state)
        self._logger.info("tracking_link_built", user_id=session.user_id, bet_code=result.code)
        return f"🎟️ Aqui está seu link rastreado:\n{tracking_link}"

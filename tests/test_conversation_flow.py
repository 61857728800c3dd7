import asyncio

import structlog

from betlink.db.enums import ConversationState
from betlink.repositories.sessions import InMemorySessionStore
from betlink.services.conversation import UNEXPECTED_ERROR_REPLY, ConversationService
from betlink.services.types import AffiliateParams, FlowCommand, UserSession

USER_ID = "42"
AFFILIATE_LINK = (
    "https://wlsuperbet.adsrv.eacdn.com/C.ashx"
    "?btag=a_11566b_431c_&affid=662&siteid=11566&adid=431&c=Telegram"
)
AFFILIATE = AffiliateParams(site_id="11566", aff_id="662", ad_id="431", c="Telegram")
EXPECTED_LINK = (
    "https://wlsuperbet.adsrv.eacdn.com/C.ashx"
    "?btag=a_11566b_431c_&affid=662&siteid=11566&adid=431&c=Telegram"
    "&asclurl=https%3A%2F%2Fsuperbet.bet.br%2Fbilhete-compartilhado%2F891S-YJLHXM"
)


def _session(store: InMemorySessionStore) -> UserSession:
    return asyncio.run(store.get(USER_ID))


def _seed(store: InMemorySessionStore, state: ConversationState, affiliate: AffiliateParams | None) -> None:
    asyncio.run(store.save(UserSession(user_id=USER_ID, state=state, affiliate=affiliate)))


def test_new_user_starts_idle_without_affiliate(store: InMemorySessionStore) -> None:
    session = _session(store)
    assert session.state is ConversationState.IDLE
    assert session.affiliate is None


def test_guided_flow_produces_tracking_link(service: ConversationService, store: InMemorySessionStore) -> None:
    asyncio.run(service.handle_command(USER_ID, FlowCommand.BEGIN_SETUP))
    assert _session(store).state is ConversationState.AWAITING_AFFILIATE_LINK

    reply = asyncio.run(service.handle_text(USER_ID, AFFILIATE_LINK))
    session = _session(store)
    assert "siteid: 11566" in reply
    assert session.state is ConversationState.AWAITING_BET_REFERENCE
    assert session.affiliate == AFFILIATE

    reply = asyncio.run(service.handle_text(USER_ID, "891S-YJLHXM"))
    assert EXPECTED_LINK in reply
    assert _session(store) == UserSession(user_id=USER_ID, state=ConversationState.IDLE, affiliate=AFFILIATE)


def test_invalid_affiliate_link_keeps_waiting(service: ConversationService, store: InMemorySessionStore) -> None:
    _seed(store, ConversationState.AWAITING_AFFILIATE_LINK, None)

    reply = asyncio.run(service.handle_text(USER_ID, "https://example.com/C.ashx?siteid=1"))

    assert reply.startswith("❌")
    assert "/reset" in reply
    assert _session(store).state is ConversationState.AWAITING_AFFILIATE_LINK


def test_invalid_bet_input_keeps_waiting(service: ConversationService, store: InMemorySessionStore) -> None:
    _seed(store, ConversationState.AWAITING_BET_REFERENCE, AFFILIATE)

    reply = asyncio.run(service.handle_text(USER_ID, "https://superbet.bet.br/outra-coisa/123"))

    assert reply.startswith("❌")
    assert _session(store).state is ConversationState.AWAITING_BET_REFERENCE


def test_waiting_for_bet_without_affiliate_is_corrected(
    service: ConversationService, store: InMemorySessionStore
) -> None:
    _seed(store, ConversationState.AWAITING_BET_REFERENCE, None)

    asyncio.run(service.handle_text(USER_ID, "891S-YJLHXM"))

    assert _session(store).state is ConversationState.AWAITING_AFFILIATE_LINK


def test_bet_code_without_affiliate_asks_for_affiliate(
    service: ConversationService, store: InMemorySessionStore
) -> None:
    reply = asyncio.run(service.handle_text(USER_ID, "891S-YJLHXM"))

    assert "link de afiliado" in reply
    assert _session(store).state is ConversationState.AWAITING_AFFILIATE_LINK


def test_pasted_affiliate_link_while_idle_is_saved(service: ConversationService, store: InMemorySessionStore) -> None:
    asyncio.run(service.handle_text(USER_ID, AFFILIATE_LINK))

    session = _session(store)
    assert session.state is ConversationState.AWAITING_BET_REFERENCE
    assert session.affiliate == AFFILIATE


def test_pasted_bet_link_while_idle_keeps_idle(service: ConversationService, store: InMemorySessionStore) -> None:
    _seed(store, ConversationState.IDLE, AFFILIATE)

    reply = asyncio.run(
        service.handle_text(USER_ID, "https://superbet.bet.br/bilhete-compartilhado/891S-YJLHXM")
    )

    assert EXPECTED_LINK in reply
    assert _session(store).state is ConversationState.IDLE


def test_unrecognised_text_is_not_understood(service: ConversationService, store: InMemorySessionStore) -> None:
    reply = asyncio.run(service.handle_text(USER_ID, "oi, tudo bem?"))

    assert "Não entendi" in reply
    assert "/help" in reply
    assert _session(store).state is ConversationState.IDLE


def test_request_bet_requires_affiliate(service: ConversationService, store: InMemorySessionStore) -> None:
    asyncio.run(service.handle_command(USER_ID, FlowCommand.REQUEST_BET))
    assert _session(store).state is ConversationState.AWAITING_AFFILIATE_LINK

    _seed(store, ConversationState.IDLE, AFFILIATE)
    asyncio.run(service.handle_command(USER_ID, FlowCommand.REQUEST_BET))
    assert _session(store).state is ConversationState.AWAITING_BET_REFERENCE


def test_change_affiliate_keeps_existing_affiliate_until_replaced(
    service: ConversationService, store: InMemorySessionStore
) -> None:
    _seed(store, ConversationState.IDLE, AFFILIATE)

    asyncio.run(service.handle_command(USER_ID, FlowCommand.CHANGE_AFFILIATE))

    session = _session(store)
    assert session.state is ConversationState.AWAITING_AFFILIATE_LINK
    assert session.affiliate == AFFILIATE


def test_reset_clears_everything_from_any_state(service: ConversationService, store: InMemorySessionStore) -> None:
    for state in ConversationState:
        _seed(store, state, AFFILIATE)
        asyncio.run(service.handle_command(USER_ID, FlowCommand.RESET))
        assert _session(store) == UserSession.default(USER_ID)


def test_show_config_lists_saved_values(service: ConversationService, store: InMemorySessionStore) -> None:
    assert "/start" in asyncio.run(service.handle_command(USER_ID, FlowCommand.SHOW_CONFIG))

    _seed(store, ConversationState.IDLE, AFFILIATE)
    reply = asyncio.run(service.handle_command(USER_ID, FlowCommand.SHOW_CONFIG))

    assert "affid: 662" in reply
    assert "c: Telegram" in reply
    assert _session(store).state is ConversationState.IDLE


def test_help_uses_configured_triggers(store: InMemorySessionStore) -> None:
    triggers = {
        "begin_setup": "comecar",
        "change_affiliate": "trocar",
        "request_bet": "bilhete",
        "show_config": "eu",
        "reset": "zerar",
        "help": "ajuda",
    }
    service = ConversationService(store, structlog.get_logger("tests"), triggers=triggers)

    reply = asyncio.run(service.handle_command(USER_ID, FlowCommand.HELP))

    assert "/comecar" in reply
    assert "/zerar" in reply
    assert "/start" not in reply


class BrokenStore(InMemorySessionStore):
    async def get(self, user_id: str) -> UserSession:
        raise RuntimeError("storage exploded")


def test_unexpected_failure_still_produces_reply() -> None:
    service = ConversationService(BrokenStore(), structlog.get_logger("tests"))

    assert asyncio.run(service.handle_text(USER_ID, AFFILIATE_LINK)) == UNEXPECTED_ERROR_REPLY
    assert asyncio.run(service.handle_command(USER_ID, FlowCommand.SHOW_CONFIG)) == UNEXPECTED_ERROR_REPLY


def test_broken_affiliate_link_while_idle_keeps_idle(
    service: ConversationService, store: InMemorySessionStore
) -> None:
    reply = asyncio.run(service.handle_text(USER_ID, "wlsuperbet.adsrv.eacdn.com/C.ashx?siteid=x"))

    assert reply.startswith("❌")
    assert _session(store) == UserSession.default(USER_ID)


def test_incomplete_affiliate_link_while_idle_keeps_saved_affiliate(
    service: ConversationService, store: InMemorySessionStore
) -> None:
    _seed(store, ConversationState.IDLE, AFFILIATE)

    reply = asyncio.run(service.handle_text(USER_ID, "https://wlsuperbet.adsrv.eacdn.com/C.ashx?siteid=1&adid=2"))

    assert "incompleto" in reply
    assert _session(store) == UserSession(user_id=USER_ID, state=ConversationState.IDLE, affiliate=AFFILIATE)

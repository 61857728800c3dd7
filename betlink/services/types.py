"""Domain records shared by the parsers, the link builder and the conversation flow."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from betlink.db.enums import ConversationState


class FlowCommand(str, Enum):
    BEGIN_SETUP = "begin_setup"
    CHANGE_AFFILIATE = "change_affiliate"
    REQUEST_BET = "request_bet"
    SHOW_CONFIG = "show_config"
    RESET = "reset"
    HELP = "help"


class LinkErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    WRONG_HOST = "wrong_host"
    WRONG_PATH = "wrong_path"
    INCOMPLETE_LINK = "incomplete_link"
    NON_NUMERIC_FIELD = "non_numeric_field"
    INVALID_BET_INPUT = "invalid_bet_input"


_ERROR_MESSAGES = {
    LinkErrorKind.INVALID_URL: "Link inválido (não parece uma URL).",
    LinkErrorKind.WRONG_HOST: (
        "Esse não parece ser o link de afiliado do tracking (wlsuperbet.../C.ashx)."
    ),
    LinkErrorKind.WRONG_PATH: (
        "Esse link não aponta para o endpoint de tracking (.../C.ashx)."
    ),
    LinkErrorKind.INCOMPLETE_LINK: "Link incompleto. Precisa conter: siteid, affid, adid e c.",
    LinkErrorKind.NON_NUMERIC_FIELD: "{field} inválido (deveria ser numérico).",
    LinkErrorKind.INVALID_BET_INPUT: (
        "Esse não parece ser um link de bilhete compartilhado da Superbet "
        "(/bilhete-compartilhado/...) nem um código de bilhete."
    ),
}


@dataclass(slots=True, frozen=True)
class LinkError:
    """Validation failure returned by the link parsers."""

    kind: LinkErrorKind
    field: str | None = None

    @property
    def message(self) -> str:
        return _ERROR_MESSAGES[self.kind].format(field=self.field or "campo")


@dataclass(slots=True, frozen=True)
class AffiliateParams:
    site_id: str
    aff_id: str
    ad_id: str
    c: str


@dataclass(slots=True, frozen=True)
class BetReference:
    code: str
    resolved_url: str


@dataclass(slots=True)
class UserSession:
    user_id: str
    state: ConversationState = ConversationState.IDLE
    affiliate: AffiliateParams | None = None

    @classmethod
    def default(cls, user_id: str) -> UserSession:
        return cls(user_id=user_id)

"""Database enums."""

from enum import Enum


class ConversationState(str, Enum):
    IDLE = "idle"
    AWAITING_AFFILIATE_LINK = "waiting_affiliate_link"
    AWAITING_BET_REFERENCE = "waiting_bet_link"

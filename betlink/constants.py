"""Application-wide constants."""

import re

TRACKING_HOST = "wlsuperbet.adsrv.eacdn.com"
TRACKING_PATH = "/C.ashx"
TRACKING_BASE_URL = f"https://{TRACKING_HOST}{TRACKING_PATH}"

BET_SLIP_HOST = "superbet.bet.br"
BET_SLIP_PATH_PREFIX = "/bilhete-compartilhado/"
BET_SLIP_BASE_URL = f"https://{BET_SLIP_HOST}{BET_SLIP_PATH_PREFIX}"

# The trailing "c_" has no value after it; the ad server expects it verbatim.
BTAG_TEMPLATE = "a_{site_id}b_{ad_id}c_"

BARE_BET_CODE_PATTERN = re.compile(r"[A-Za-z0-9-]{4,40}")
BET_SLIP_PATH_PATTERN = re.compile(r"/bilhete-compartilhado/([A-Za-z0-9-]+)")
NUMERIC_FIELD_PATTERN = re.compile(r"[0-9]+")

# Substrings used to recognise pasted links outside of a guided flow.
AFFILIATE_LINK_MARKER = f"{TRACKING_HOST}{TRACKING_PATH}".lower()
BET_SLIP_LINK_MARKER = f"{BET_SLIP_HOST}{BET_SLIP_PATH_PREFIX}"

EXAMPLE_AFFILIATE_LINK = (
    f"{TRACKING_BASE_URL}?btag=a_11566b_431c_&affid=662&siteid=11566&adid=431&c=Telegram"
)
EXAMPLE_BET_SLIP_LINK = f"{BET_SLIP_BASE_URL}891S-YJLHXM"

DEFAULT_COMMAND_TRIGGERS = {
    "begin_setup": "start",
    "change_affiliate": "setlink",
    "request_bet": "bilhete",
    "show_config": "me",
    "reset": "reset",
    "help": "help",
}

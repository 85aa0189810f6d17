"""Stable constants shared across the parsers, validators and exporter."""

from __future__ import annotations

import re
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1
PRODUCT_TABLE_SCHEMA_VERSION: Final[int] = 1

# Vendor daemon name every DAEMON/VENDOR line must declare.
VENDOR_DAEMON_NAME: Final[str] = "MLM"

# Expiry used for perpetual licenses (``01-jan-0000`` in the file).
PERPETUAL_EXPIRY_TOKEN: Final[str] = "01-jan-0000"
PERPETUAL_EXPIRY_REPLACEMENT: Final[str] = "01-jan-2999"

# Common FlexLM ports people type where the host id belongs.
PORTS_MISTAKEN_FOR_HOST_ID: Final[frozenset[str]] = frozenset({"27000", "27001", "27010"})

# Accepted SERVER line counts (single server or three-server redundancy).
VALID_SERVER_LINE_COUNTS: Final[frozenset[int]] = frozenset({1, 3})

PRODUCT_KEY_MIN_LENGTH: Final[int] = 10
PRODUCT_KEY_MAX_LENGTH: Final[int] = 20

# Bundling product whose SN= carries the license number for legacy PolySpace lines.
BUNDLING_PRODUCT_NAME: Final[str] = "TMW_Archive"
BUNDLED_PRODUCT_MARKER: Final[str] = "PolySpace"

# Product that must never be registered as NNU and needs a username note.
PARALLEL_SERVER_PRODUCT_NAME: Final[str] = "MATLAB_Distrib_Comp_Engine"

# License number whose zero-seat CN entries are really mislabelled DC licenses.
MISLABELLED_CN_LICENSE_NUMBER: Final[str] = "220668"

TRIAL_LICENSE_NUMBER: Final[str] = "DEMO"

DEFAULT_DEBOUNCE_MS: Final[int] = 150
MAX_DEBOUNCE_MS: Final[int] = 10_000

# Loose IP address detector for client values (dynamic addresses make poor targets).
IP_ADDRESS_RE: Final[re.Pattern[str]] = re.compile(r"\d{2,3}\.")

__all__ = [
    "BUNDLED_PRODUCT_MARKER",
    "BUNDLING_PRODUCT_NAME",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_DEBOUNCE_MS",
    "IP_ADDRESS_RE",
    "MAX_DEBOUNCE_MS",
    "MISLABELLED_CN_LICENSE_NUMBER",
    "PARALLEL_SERVER_PRODUCT_NAME",
    "PERPETUAL_EXPIRY_REPLACEMENT",
    "PERPETUAL_EXPIRY_TOKEN",
    "PORTS_MISTAKEN_FOR_HOST_ID",
    "PRODUCT_KEY_MAX_LENGTH",
    "PRODUCT_KEY_MIN_LENGTH",
    "PRODUCT_TABLE_SCHEMA_VERSION",
    "TRIAL_LICENSE_NUMBER",
    "VALID_SERVER_LINE_COUNTS",
    "VENDOR_DAEMON_NAME",
]

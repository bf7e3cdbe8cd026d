"""Publication gate settings read from the environment on every call."""

import os
from decimal import Decimal, InvalidOperation

TRUTHY_VALUES = ("1", "true", "yes", "on")

# Fixed authorization template set issued through the e-signature provider
AUTHORIZATION_TEMPLATE_CODES = ("AUT_VENDA_V1", "AUT_GESTAO_V1")

# Roles allowed to approve or withdraw publications
ELEVATED_ROLES = ("admin", "gestor")

FALLBACK_COMMISSION_PERCENT = Decimal("6")


def is_digital_authorization_required() -> bool:
    """Whether a signed digital authorization is mandatory for publishing.

    Unset or blank means required.
    """
    raw = os.environ.get("PROPERTY_PUBLISH_REQUIRE_DIGITAL_AUTHORIZATION", "").strip().lower()
    if not raw:
        return True
    return raw in TRUTHY_VALUES


def get_default_commission_percent() -> Decimal:
    """Commission used when neither the settings record nor the listing has one."""
    raw = os.environ.get("DEFAULT_COMMISSION_PERCENT", "").strip().replace(",", ".")
    if not raw:
        return FALLBACK_COMMISSION_PERCENT
    try:
        return Decimal(raw)
    except InvalidOperation:
        return FALLBACK_COMMISSION_PERCENT

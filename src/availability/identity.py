"""Identity resolution for Sources API and event bus calls.

Platform services authenticate tenant requests with an ``x-rh-identity``
header: base64-encoded JSON naming the tenant account.
"""

from __future__ import annotations

import base64
import json

IDENTITY_HEADER = "x-rh-identity"

IdentityHeaders = dict[str, str]


def identity_by_account_number(account_number: str | None) -> IdentityHeaders:
    """Build identity headers for a tenant account.

    Args:
        account_number: Tenant account number. None or blank means no tenant.

    Returns:
        Mapping with the ``x-rh-identity`` header, or an empty mapping when
        no account number was given.
    """
    if account_number is None or not account_number.strip():
        return {}

    identity = {
        "identity": {
            "account_number": account_number,
            "user": {"is_org_admin": True},
        }
    }
    encoded = base64.b64encode(json.dumps(identity).encode("utf-8")).decode("ascii")
    return {IDENTITY_HEADER: encoded}

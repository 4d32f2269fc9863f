"""
Onboarding Request Service
Blueprint registry and shared request helpers.
"""

from flask import request

# camelCase wire field → model attribute
FIELD_MAP = {
    "tradingName": "trading_name",
    "contactName": "contact_name",
    "contactEmail": "contact_email",
    "contactPhone": "contact_phone",
    "companyAddress": "company_address",
    "industry": "industry",
    "companySize": "company_size",
    "requestType": "request_type",
    "region": "region",
    "notes": "notes",
}


def to_model_fields(payload):
    """Translate a JSON body to model attribute names, dropping unknown keys."""
    return {FIELD_MAP[k]: v for k, v in payload.items() if k in FIELD_MAP}


def request_actor():
    """Actor id from the X-User-ID header, or None (ledger uses its sentinel)."""
    actor = (request.headers.get("X-User-ID") or "").strip()
    return actor or None


def page_args():
    """Raw page/limit query params; the query service coerces them.

    Returns:
        (page, limit)
    """
    return request.args.get("page"), request.args.get("limit")

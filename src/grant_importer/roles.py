"""Category slug -> user role mapping."""

from __future__ import annotations


ROLE_MAP: dict[str, str] = {
    "bhwet-para": "bhwet-para-user",
    "bhwet-pro": "bhwet-pro-user",
    "bhwet-social": "bhwet-social-user",
    "gpe": "gpe-user",
    "istp": "istp-user",
    "oifsp": "oifsp-user",
    "amf": "amf-user",
}

# Low-privilege role for any slug not in ROLE_MAP
DEFAULT_ROLE = "subscriber"


def map_role(category_slug: str) -> str:
    return ROLE_MAP.get(category_slug, DEFAULT_ROLE)

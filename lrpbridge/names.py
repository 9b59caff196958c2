from __future__ import annotations

import hashlib
import re

APP_NAME_RE = re.compile(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$")

DNS_LABEL_MAX = 63

SERVICE_PREFIX = "cf-"
HEADLESS_SERVICE_PREFIX = "cfh-"


def validate_app_name(name: str) -> None:
    if not APP_NAME_RE.match(name):
        raise ValueError(
            f"Invalid app name {name!r}. Use lowercase letters/numbers and hyphen, "
            "starting and ending with a letter or number (max 63 chars)."
        )


def _derived_name(prefix: str, app_name: str) -> str:
    # Plain names are at most 62 chars and hashed ones exactly 63, so the two
    # forms cannot collide with each other.
    plain = f"{prefix}{app_name}"
    if len(plain) < DNS_LABEL_MAX:
        return plain
    digest = hashlib.sha1(app_name.encode("utf-8")).hexdigest()[:10]
    head = plain[: DNS_LABEL_MAX - len(digest) - 1]
    return f"{head}-{digest}"


def service_name(app_name: str) -> str:
    return _derived_name(SERVICE_PREFIX, app_name)


def headless_service_name(app_name: str) -> str:
    return _derived_name(HEADLESS_SERVICE_PREFIX, app_name)

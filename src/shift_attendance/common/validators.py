from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_PHONE = re.compile(r"^[\d\s\-\+\(\)]{10,}$")


def require_min_length(value: str, field_name: str, min_len: int, message: str | None = None) -> str:
    if value is None or len(value.strip()) < min_len:
        raise ValidationError(message or f"{field_name} must be at least {min_len} characters", field=field_name)
    return value


def is_valid_phone(value: str) -> bool:
    return bool(_PHONE.match(value or ""))

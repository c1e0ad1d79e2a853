import re
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence
from urllib.parse import urlparse

from .sql import INTEGER_MAX

MAX_KEY_LENGTH = 25

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

Check = Callable[[str, Any], Optional[str]]


def _is_non_empty_str(v: Any) -> bool:
    return isinstance(v, str) and v.strip() != ""


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def _text(f: str, v: Any) -> Optional[str]:
    if not _is_non_empty_str(v):
        return f"Field '{f}' must be a non-empty string"
    return None


def _key(f: str, v: Any) -> Optional[str]:
    if not _is_non_empty_str(v):
        return f"Field '{f}' must be a non-empty string"
    if len(v) > MAX_KEY_LENGTH:
        return f"Field '{f}' length must be at most {MAX_KEY_LENGTH}"
    return None


def _count(f: str, v: Any) -> Optional[str]:
    if not _is_int(v) or v < 0:
        return f"Field '{f}' must be a non-negative integer"
    if v > INTEGER_MAX:
        return f"Field '{f}' must be at most {INTEGER_MAX}"
    return None


def _equity(f: str, v: Any) -> Optional[str]:
    if isinstance(v, bool) or not isinstance(v, (int, float, Decimal)):
        return f"Field '{f}' must be a number"
    if not 0 <= v <= 1:
        return f"Field '{f}' must be between 0 and 1"
    return None


def _url(f: str, v: Any) -> Optional[str]:
    if not isinstance(v, str) or not _valid_url(v):
        return f"Field '{f}' must be a valid absolute URL (scheme + host)"
    return None


def _email(f: str, v: Any) -> Optional[str]:
    if not isinstance(v, str) or not _EMAIL.match(v):
        return f"Field '{f}' must be a valid email address"
    return None


def _password(f: str, v: Any) -> Optional[str]:
    if not isinstance(v, str) or len(v) < 5:
        return f"Field '{f}' length must be at least 5"
    return None


def _flag(f: str, v: Any) -> Optional[str]:
    if not isinstance(v, bool):
        return f"Field '{f}' must be a boolean"
    return None


COMPANY_FIELDS: Dict[str, Check] = {
    "handle": _key,
    "name": _text,
    "description": _text,
    "numEmployees": _count,
    "logoUrl": _url,
}
COMPANY_NULLABLE = {"numEmployees", "logoUrl"}

JOB_FIELDS: Dict[str, Check] = {
    "title": _text,
    "salary": _count,
    "equity": _equity,
    "companyHandle": _key,
}
JOB_NULLABLE = {"salary", "equity"}

USER_FIELDS: Dict[str, Check] = {
    "username": _key,
    "password": _password,
    "firstName": _text,
    "lastName": _text,
    "email": _email,
    "isAdmin": _flag,
}


def _validate(
    data: Dict[str, Any],
    checks: Dict[str, Check],
    allowed: Sequence[str],
    required: Sequence[str] = (),
    nullable: Sequence[str] = (),
) -> List[str]:
    errors: List[str] = []

    if not isinstance(data, dict):
        return ["Payload must be an object"]

    for f in data:
        if f not in allowed:
            errors.append(f"Field '{f}' is not allowed")

    for f in required:
        if f not in data:
            errors.append(f"Missing required field: {f}")

    for f in allowed:
        if f not in data:
            continue
        v = data[f]
        if v is None:
            if f not in nullable:
                errors.append(f"Field '{f}' must not be null")
            continue
        message = checks[f](f, v)
        if message:
            errors.append(message)

    return errors


def validate_company_new(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    return _validate(
        data,
        COMPANY_FIELDS,
        allowed=list(COMPANY_FIELDS),
        required=["handle", "name", "description"],
        nullable=COMPANY_NULLABLE,
    )


def validate_company_update(data: Dict[str, Any]) -> List[str]:
    """The handle cannot be changed."""
    return _validate(
        data,
        COMPANY_FIELDS,
        allowed=["name", "description", "numEmployees", "logoUrl"],
        nullable=COMPANY_NULLABLE,
    )


def validate_job_new(data: Dict[str, Any]) -> List[str]:
    return _validate(
        data,
        JOB_FIELDS,
        allowed=list(JOB_FIELDS),
        required=["title", "companyHandle"],
        nullable=JOB_NULLABLE,
    )


def validate_job_update(data: Dict[str, Any]) -> List[str]:
    """Neither the id nor the owning company can be changed."""
    return _validate(
        data,
        JOB_FIELDS,
        allowed=["title", "salary", "equity"],
        nullable=JOB_NULLABLE,
    )


def validate_user_new(data: Dict[str, Any]) -> List[str]:
    return _validate(
        data,
        USER_FIELDS,
        allowed=list(USER_FIELDS),
        required=["username", "password", "firstName", "lastName", "email"],
    )


def validate_user_update(data: Dict[str, Any]) -> List[str]:
    return _validate(
        data,
        USER_FIELDS,
        allowed=["password", "firstName", "lastName", "email", "isAdmin"],
    )

"""
Field Validators

Pure predicates for every user field, plus `require_*` helpers that raise
ValidationError naming the offending field. Nothing here touches storage.
"""
import re
from typing import Any, Optional

import phonenumbers
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from userstore.domain.user import ROLES
from userstore.exceptions import ValidationError

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

# Encoded Argon2i hash with the fixed cost parameters the auth service uses.
# Salt and digest are unpadded standard base64 (22 and 43 chars), 95 chars in
# total. Only the base64 alphabet is accepted: punctuation such as "_" or ":"
# never appears in a real Argon2 encoding, so hashes containing it are rejected.
ARGON2I_HASH_PATTERN = re.compile(
    r"^\$argon2i\$v=19\$m=4096,t=3,p=1\$[A-Za-z0-9+/]{22}\$[A-Za-z0-9+/]{43}$"
)

# E.164: leading '+', no separators, at most 15 digits.
E164_PATTERN = re.compile(r"^\+[1-9]\d{4,14}$")

MOBILE_NUMBER_TYPES = (
    phonenumbers.PhoneNumberType.MOBILE,
    phonenumbers.PhoneNumberType.FIXED_LINE_OR_MOBILE,
)

_email_adapter = TypeAdapter(EmailStr)


def is_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def is_uuid(value: Any) -> bool:
    return is_string(value) and UUID_PATTERN.match(value) is not None


def is_email(value: Any) -> bool:
    if not is_string(value):
        return False
    try:
        normalized = _email_adapter.validate_python(value)
    except PydanticValidationError:
        return False
    # EmailStr also accepts "Name <address>"; only a bare address is stored
    return normalized.lower() == value.lower()


def is_mobile_phone(value: Any) -> bool:
    """
    Strict international mobile number check.

    The number must be written in E.164 form and be a valid mobile number
    for the country its calling code resolves to.
    """
    if not is_string(value) or not E164_PATTERN.match(value):
        return False
    try:
        number = phonenumbers.parse(value, None)
    except phonenumbers.NumberParseException:
        return False
    if not phonenumbers.is_valid_number(number):
        return False
    return phonenumbers.number_type(number) in MOBILE_NUMBER_TYPES


def is_password_hash(value: Any) -> bool:
    return is_string(value) and ARGON2I_HASH_PATTERN.match(value) is not None


def is_role(value: Any) -> bool:
    return is_string(value) and value in ROLES


def require_id(value: Any) -> str:
    if not is_uuid(value):
        raise ValidationError("id")
    return value


def require_email(value: Any) -> str:
    if not is_email(value):
        raise ValidationError("email")
    return value


def require_phone(value: Any) -> str:
    if not is_mobile_phone(value):
        raise ValidationError("phone")
    return value


def require_password(value: Any) -> str:
    if not is_password_hash(value):
        raise ValidationError("password")
    return value


def require_role(value: Any) -> str:
    if not is_role(value):
        raise ValidationError("role")
    return value


def validate_new_user(
    email: Any,
    phone: Any,
    password: Any,
    id: Optional[Any] = None,
) -> dict:
    """
    Validate the arguments of an insert.

    Returns the field mapping to persist; `id` is only included when given.
    """
    values = {
        "email": require_email(email),
        "password": require_password(password),
        "phone": require_phone(phone),
    }
    if id is not None:
        values["id"] = require_id(id)
    return values

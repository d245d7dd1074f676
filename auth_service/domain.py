"""
Domain values for the authentication service.

Every value that crosses into the service is parsed here first. Secret
values (passwords, login attempt ids, two-factor codes) are held in
``SecretStr`` so they do not show up in logs or reprs by accident.
"""
import hmac
import re
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Union

from pydantic import SecretStr

MIN_PASSWORD_LENGTH = 8

TWO_FA_CODE_MIN = 100_000
TWO_FA_CODE_MAX = 999_999

_DIGITS_PATTERN = re.compile(r"[0-9]+")

_HYPHENATED_UUID = r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
_UUID_PATTERN = re.compile(
    rf"{_HYPHENATED_UUID}|[0-9a-fA-F]{{32}}|\{{{_HYPHENATED_UUID}\}}|urn:uuid:{_HYPHENATED_UUID}"
)

SecretInput = Union[str, SecretStr]


def _expose(value: SecretInput) -> str:
    if isinstance(value, SecretStr):
        return value.get_secret_value()
    if not isinstance(value, str):
        raise ValueError(f"Expected a string, got {type(value).__name__}")
    return value


class Email:
    """A user's email address. Case-sensitive, must contain an ``@``."""

    __slots__ = ("_value",)

    def __init__(self, value: str):
        self._value = value

    # PUBLIC_INTERFACE
    @classmethod
    def parse(cls, value: SecretInput) -> "Email":
        """
        Parse an email address.

        Args:
            value: Raw email string.

        Returns:
            Parsed Email.

        Raises:
            ValueError: If the value does not contain an ``@``.
        """
        raw = _expose(value)
        if "@" not in raw:
            raise ValueError(f"{raw!r} is an invalid email address")
        return cls(raw)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Email({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Email):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


class Password:
    """A raw password candidate. Never displayed."""

    __slots__ = ("_secret",)

    def __init__(self, secret: SecretStr):
        self._secret = secret

    # PUBLIC_INTERFACE
    @classmethod
    def parse(cls, value: SecretInput, min_length: int = MIN_PASSWORD_LENGTH) -> "Password":
        """
        Parse a password.

        Raises:
            ValueError: If the password is shorter than ``min_length``.
        """
        raw = _expose(value)
        if len(raw) < min_length:
            raise ValueError(f"Password must contain at least {min_length} characters")
        return cls(SecretStr(raw))

    def expose_secret(self) -> str:
        return self._secret.get_secret_value()

    def __repr__(self) -> str:
        return "Password('**********')"

    __str__ = __repr__


class _SecretValue:
    """Base for secrets compared in constant time."""

    __slots__ = ("_secret",)

    def __init__(self, secret: SecretStr):
        self._secret = secret

    def expose_secret(self) -> str:
        return self._secret.get_secret_value()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return hmac.compare_digest(
            self.expose_secret().encode("utf-8"),
            other.expose_secret().encode("utf-8"),
        )

    def __hash__(self) -> int:
        return hash(self.expose_secret())

    def __repr__(self) -> str:
        return f"{type(self).__name__}('**********')"

    __str__ = __repr__


class LoginAttemptId(_SecretValue):
    """Identifier of a single login attempt awaiting a second factor."""

    __slots__ = ()

    # PUBLIC_INTERFACE
    @classmethod
    def parse(cls, value: SecretInput) -> "LoginAttemptId":
        """
        Parse a login attempt id.

        The hyphenated, simple hex, braced and ``urn:uuid:`` forms are
        accepted and normalized to the canonical hyphenated representation.

        Raises:
            ValueError: If the value is not a well-formed UUID.
        """
        raw = _expose(value)
        if not _UUID_PATTERN.fullmatch(raw):
            raise ValueError("Invalid login attempt id")
        try:
            parsed = uuid.UUID(raw)
        except (ValueError, AttributeError, TypeError):
            raise ValueError("Invalid login attempt id") from None
        return cls(SecretStr(str(parsed)))

    # PUBLIC_INTERFACE
    @classmethod
    def generate(cls) -> "LoginAttemptId":
        """Create a new random login attempt id."""
        return cls(SecretStr(str(uuid.uuid4())))


class TwoFACode(_SecretValue):
    """Six digit second-factor code in the range 100000-999999."""

    __slots__ = ()

    # PUBLIC_INTERFACE
    @classmethod
    def parse(cls, value: Union[SecretInput, int]) -> "TwoFACode":
        """
        Parse a two-factor code.

        Accepts an int or a string of ASCII digits. Signs, whitespace and
        leading zeros are rejected so the stored form is always six digits.

        Raises:
            ValueError: If the value is not a code in the valid range.
        """
        if isinstance(value, bool):
            raise ValueError("Invalid 2FA code")
        if isinstance(value, int):
            number = value
        else:
            raw = _expose(value)
            if not _DIGITS_PATTERN.fullmatch(raw):
                raise ValueError("Invalid 2FA code")
            number = int(raw)
            if str(number) != raw:
                raise ValueError("Invalid 2FA code")

        if not TWO_FA_CODE_MIN <= number <= TWO_FA_CODE_MAX:
            raise ValueError("Invalid 2FA code")
        return cls(SecretStr(str(number)))

    # PUBLIC_INTERFACE
    @classmethod
    def generate(cls) -> "TwoFACode":
        """Draw a new random code."""
        number = TWO_FA_CODE_MIN + secrets.randbelow(TWO_FA_CODE_MAX - TWO_FA_CODE_MIN + 1)
        return cls(SecretStr(str(number)))


@dataclass(frozen=True)
class User:
    """
    A stored identity.

    ``password_hash`` is the self-describing hash string produced by the
    password hasher, never the raw password.
    """
    email: Email
    password_hash: str = field(repr=False)
    requires_2fa: bool = False

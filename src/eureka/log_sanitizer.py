"""Log sanitization module for preventing secret leakage.

This module masks sensitive data in logs, error messages and printed
container environments. It implements pattern-based redaction for:
- Vault tokens wired into container environments
- Bearer tokens and X-Okapi-Token headers
- JWT access tokens
- Passwords and client secrets in form data or JSON bodies

Design Philosophy:
- Security first: err on side of over-redaction
- Pattern-based: not brittle keyword matching
- Fail-safe: if in doubt, mask it
"""

import re
from re import Pattern
from typing import Any


class LogSanitizer:
    """Sanitize sensitive data from logs and error messages.

    All methods are class methods and can be called without instantiation.
    """

    REDACTED = "[REDACTED]"

    # Order matters: more specific patterns should come first
    SECRET_PATTERNS: dict[str, Pattern] = {
        # KEY=VALUE env entries whose key ends in TOKEN, SECRET or PASSWORD
        "env_assignment": re.compile(r"\b([A-Z0-9_]*(?:TOKEN|SECRET|PASSWORD)=)([^\s,'\"]+)"),
        "authorization_bearer": re.compile(r"(Authorization:\s*Bearer\s+)([^\s]+)", re.IGNORECASE),
        "okapi_token_header": re.compile(
            r"(X-Okapi-Token[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)", re.IGNORECASE
        ),
        "vault_token_header": re.compile(
            r"(X-Vault-Token[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)", re.IGNORECASE
        ),
        "client_secret": re.compile(
            r"(client[_-]?secret[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)", re.IGNORECASE
        ),
        "password": re.compile(r"(password[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)", re.IGNORECASE),
        "access_token": re.compile(
            r"(access[_-]?token[\"']?\s*[:=]\s*[\"']?)([^\s\"'&,\)]+)", re.IGNORECASE
        ),
    }

    JWT_PATTERN: Pattern = re.compile(r"\beyJ[\w-]+\.[\w-]+\.[\w-]+")

    SENSITIVE_KEY_WORDS = ("TOKEN", "SECRET", "PASSWORD")

    @classmethod
    def sanitize(cls, message: str) -> str:
        """Sanitize message by redacting sensitive patterns.

        Examples:
            >>> LogSanitizer.sanitize("SECRET_STORE_VAULT_TOKEN=hvs.abc")
            'SECRET_STORE_VAULT_TOKEN=[REDACTED]'
            >>> LogSanitizer.sanitize("password=admin")
            'password=[REDACTED]'
        """
        if not isinstance(message, str):
            message = str(message)

        result = message
        for pattern in cls.SECRET_PATTERNS.values():
            result = pattern.sub(r"\1" + cls.REDACTED, result)

        return cls.JWT_PATTERN.sub(cls.REDACTED, result)

    @classmethod
    def sanitize_env_list(cls, env: list[str]) -> list[str]:
        """Redact values of sensitive ``KEY=VALUE`` entries.

        Examples:
            >>> LogSanitizer.sanitize_env_list(["SECRET_STORE_TYPE=VAULT", "KC_PASSWORD=x"])
            ['SECRET_STORE_TYPE=VAULT', 'KC_PASSWORD=[REDACTED]']
        """
        result = []
        for entry in env:
            key, sep, _value = entry.partition("=")
            if sep and key.upper().endswith(cls.SENSITIVE_KEY_WORDS):
                result.append(f"{key}={cls.REDACTED}")
            else:
                result.append(entry)
        return result

    @classmethod
    def sanitize_dict(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Sanitize dictionary values recursively.

        Keys containing token, secret or password are redacted outright.
        """
        result: dict[str, Any] = {}
        for key, value in data.items():
            if any(word.lower() in key.lower() for word in cls.SENSITIVE_KEY_WORDS):
                result[key] = cls.REDACTED
            elif isinstance(value, dict):
                result[key] = cls.sanitize_dict(value)
            elif isinstance(value, str):
                result[key] = cls.sanitize(value)
            else:
                result[key] = value
        return result

    @classmethod
    def create_safe_error_message(cls, error: Exception, context: str = "") -> str:
        """Create error message with secrets sanitized.

        Examples:
            >>> err = ValueError("Token request failed: client_secret=abc123")
            >>> LogSanitizer.create_safe_error_message(err, "Keycloak")
            'Keycloak: Token request failed: client_secret=[REDACTED]'
        """
        sanitized_msg = cls.sanitize(str(error))

        if context:
            return f"{context}: {sanitized_msg}"
        return sanitized_msg


__all__ = ["LogSanitizer"]

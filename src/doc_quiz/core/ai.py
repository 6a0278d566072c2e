"""OpenAI client bootstrap."""

from __future__ import annotations

import os
from typing import Any, Optional

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "CredentialError", "load_client", "resolve_api_key"]

API_KEY_ENV = "OPENAI_API_KEY"


class CredentialError(RuntimeError):
    """Raised when no API key is available for the provider."""


def resolve_api_key(explicit: Optional[str] = None) -> str:
    """Prefer the user-supplied key, then ``OPENAI_API_KEY`` (``.env`` aware)."""

    if explicit and explicit.strip():
        return explicit.strip()
    load_dotenv()
    api_key = (os.getenv(API_KEY_ENV) or "").strip()
    if not api_key:
        raise CredentialError(
            "Missing API key. Pass --api-key or set OPENAI_API_KEY "
            "(a .env file works too)."
        )
    return api_key


def load_client(
    api_key: Optional[str] = None,
    *,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Initialize an OpenAI client; no request is made here."""

    kwargs: dict[str, Any] = {"api_key": resolve_api_key(api_key)}
    if base_url:
        kwargs["base_url"] = base_url
    if timeout:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)

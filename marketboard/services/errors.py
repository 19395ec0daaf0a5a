"""Failures raised by provider clients and the fallback cascade."""

from __future__ import annotations

from typing import Sequence


class ProviderError(Exception):
    """A single provider call failed (transport, status, decode or shape)."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderTimeout(ProviderError):
    """The call did not finish before its deadline and was cancelled."""

    def __init__(self, provider: str, seconds: float):
        super().__init__(provider, f"timed out after {seconds:g}s")
        self.seconds = seconds


class CascadeExhausted(ProviderError):
    """Primary retries and the secondary provider all failed."""

    def __init__(self, label: str, errors: Sequence[BaseException]):
        detail = "; ".join(str(e) for e in errors) or "no provider attempted"
        super().__init__(label, f"all providers failed ({detail})")
        self.errors = list(errors)

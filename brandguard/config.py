"""
Runtime configuration for the upstream workflow engine.

Values come from environment variables. Unset or blank endpoint URLs stay
``None`` so a missing endpoint is observable instead of becoming an empty
call target.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

DEFAULT_TIMEOUT_MS = 12000


def _first_set(env: Mapping[str, str], *names: str) -> str | None:
    for name in names:
        value = env.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


class UpstreamSettings(BaseModel):
    """
    Upstream workflow endpoints and timeouts.

    Attributes:
        evaluate_url: Endpoint of the evaluation workflow (EVALUATE_URL)
        fix_url: Endpoint of the fix workflow (FIX_URL)
        evaluate_timeout_ms: Bound on an evaluate call (EVALUATE_TIMEOUT_MS)
        fix_timeout_ms: Bound on a fix call (FIX_TIMEOUT_MS, falls back to
            EVALUATE_TIMEOUT_MS)
    """

    evaluate_url: str | None = None
    fix_url: str | None = None
    evaluate_timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0)
    fix_timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, gt=0)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "UpstreamSettings":
        """
        Build settings from environment variables.

        The legacy N8N_EVALUATE_URL / N8N_FIX_URL names are honoured when the
        plain names are unset.

        Raises:
            ValueError: If a timeout override is not a positive integer
        """
        env = os.environ if env is None else env

        evaluate_timeout = _first_set(env, "EVALUATE_TIMEOUT_MS")
        fix_timeout = _first_set(env, "FIX_TIMEOUT_MS", "EVALUATE_TIMEOUT_MS")

        return cls(
            evaluate_url=_first_set(env, "EVALUATE_URL", "N8N_EVALUATE_URL"),
            fix_url=_first_set(env, "FIX_URL", "N8N_FIX_URL"),
            evaluate_timeout_ms=int(evaluate_timeout) if evaluate_timeout else DEFAULT_TIMEOUT_MS,
            fix_timeout_ms=int(fix_timeout) if fix_timeout else DEFAULT_TIMEOUT_MS,
        )

"""
Library settings.

Sessions take an explicit `Settings` instance; the library never reads the
environment on its own. Applications that want env/.env driven settings
call `load_settings()` once and pass the result along.

Expected .env keys (or system env):

    DH_DEFAULT_GROUP=modp2048      # group used by DiffieHellman.from_group()
    DH_STRICT_PUBLIC_KEY=false     # reject remote keys outside 1 < B < p-1
    DH_BTWOC_OCTETS=false          # btwoc as real octets instead of binary digits
"""

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from diffiehellman.common.errors import InvalidParameter
from diffiehellman.crypto.groups import GROUPS

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    default_group: str = "modp2048"
    strict_public_key: bool = False
    btwoc_octets: bool = False

    @field_validator("default_group")
    @classmethod
    def _known_group(cls, value: str) -> str:
        if value not in GROUPS:
            raise ValueError(f"default_group must be one of {sorted(GROUPS)}")
        return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise InvalidParameter(f"{name} must be a boolean, got {raw!r}")


def load_settings(env_file: Optional[str] = None) -> Settings:
    """
    Build Settings from environment variables, after loading `env_file`
    (or a .env found by python-dotenv). Variables already present in the
    process environment win over the file.

    Raises:
        InvalidParameter: if a variable holds an unusable value.
    """
    load_dotenv(dotenv_path=env_file)

    strict = _env_bool("DH_STRICT_PUBLIC_KEY", False)
    octets = _env_bool("DH_BTWOC_OCTETS", False)
    group = os.getenv("DH_DEFAULT_GROUP", "modp2048").strip()

    try:
        return Settings(
            default_group=group,
            strict_public_key=strict,
            btwoc_octets=octets,
        )
    except ValidationError as exc:
        raise InvalidParameter(f"Invalid Diffie-Hellman settings: {exc}") from exc

"""Exchange endpoint configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .env import env_flag, env_int, require_env_vars
from .errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_COOKIE_NAME: Final[str] = "exchange1c_session"
DEFAULT_SESSION_TTL_SECONDS: Final[int] = 3600

DEFAULT_MODELS: Final[dict[str, str]] = {
    "group": "exchange1c.adapters.sqlalchemy.models:CatalogGroup",
    "product": "exchange1c.adapters.sqlalchemy.models:CatalogProduct",
    "offer": "exchange1c.adapters.sqlalchemy.models:CatalogOffer",
}

_MODEL_ENV_VARS: Final[dict[str, str]] = {
    "group": "EXCHANGE1C_GROUP_MODEL",
    "product": "EXCHANGE1C_PRODUCT_MODEL",
    "offer": "EXCHANGE1C_OFFER_MODEL",
}


@dataclass(frozen=True, slots=True)
class ExchangeConfig:
    """Settings resolved once per process and shared by every exchange phase.

    ``models`` maps a capability name (``group``, ``product``, ``offer``) to the
    host class implementing it, either as the class itself or as a
    ``"package.module:Class"`` import string.
    """

    import_dir: Path
    login: str
    password: str
    use_zip: bool = False
    file_limit: int = 0
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    cookie_name: str = DEFAULT_COOKIE_NAME
    models: Mapping[str, object] = field(default_factory=lambda: dict(DEFAULT_MODELS))

    def __post_init__(self) -> None:
        if self.file_limit < 0:
            raise ConfigurationError("file_limit must be non-negative")
        if self.session_ttl_seconds <= 0:
            raise ConfigurationError("session_ttl_seconds must be positive")

    def resolve_import_dir(self) -> Path:
        return self.import_dir.expanduser().resolve()

    def ensure_import_dir(self) -> Path:
        import_dir = self.resolve_import_dir()
        import_dir.mkdir(parents=True, exist_ok=True)
        return import_dir

    def full_path(self, filename: str) -> Path:
        """Return ``filename`` reduced to its base name inside the import directory."""

        return self.resolve_import_dir() / Path(filename).name


def get_exchange_config() -> ExchangeConfig:
    values = require_env_vars(
        ("EXCHANGE1C_IMPORT_DIR", "EXCHANGE1C_LOGIN", "EXCHANGE1C_PASSWORD")
    )
    models: dict[str, object] = dict(DEFAULT_MODELS)
    for capability, env_name in _MODEL_ENV_VARS.items():
        override = os.getenv(env_name)
        if override and override.strip():
            models[capability] = override.strip()

    return ExchangeConfig(
        import_dir=Path(values["EXCHANGE1C_IMPORT_DIR"]),
        login=values["EXCHANGE1C_LOGIN"],
        password=values["EXCHANGE1C_PASSWORD"],
        use_zip=env_flag("EXCHANGE1C_USE_ZIP"),
        file_limit=env_int("EXCHANGE1C_FILE_LIMIT", default=0),
        session_ttl_seconds=env_int(
            "EXCHANGE1C_SESSION_TTL", default=DEFAULT_SESSION_TTL_SECONDS, minimum=1
        ),
        cookie_name=os.getenv("EXCHANGE1C_COOKIE_NAME") or DEFAULT_COOKIE_NAME,
        models=models,
    )

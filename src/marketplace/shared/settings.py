"""Runtime settings resolved at start-up.

Lookup order for every key: environment variable, then the ``[custom]``
section of the domain configuration, then the default declared here. The JWT
secret has no default.
"""

import os
import secrets
from functools import lru_cache

from protean.exceptions import ConfigurationError

from marketplace.domain import marketplace
from marketplace.utils.logging import get_environment

_EPHEMERAL_SECRET_ENVIRONMENTS = {"test", "development"}


def _custom_config() -> dict:
    return marketplace.config.get("custom", {}) or {}


def _lookup(key: str, default=None):
    env_value = os.getenv(key.upper())
    if env_value is not None:
        return env_value
    return _custom_config().get(key.lower(), default)


@lru_cache(maxsize=1)
def jwt_secret() -> str:
    secret = _lookup("jwt_secret")
    if secret:
        return secret
    if get_environment() in _EPHEMERAL_SECRET_ENVIRONMENTS:
        return secrets.token_urlsafe(32)
    raise ConfigurationError("JWT_SECRET must be set outside test and development environments")


def jwt_algorithm() -> str:
    return _lookup("jwt_algorithm", "HS256")


def token_lifetime_hours() -> int:
    return int(_lookup("token_lifetime_hours", 24))


def default_delivery_charge() -> float:
    return float(_lookup("default_delivery_charge", 300.0))


def platform_fee_rate() -> float:
    return float(_lookup("platform_fee_rate", 0.02))


def agent_commission_rate() -> float:
    return float(_lookup("agent_commission_rate", 0.05))


def regions_file() -> str | None:
    return _lookup("marketplace_regions_file")


def cookie_secure() -> bool:
    return get_environment() in ("production", "staging")


def bcrypt_rounds() -> int:
    return int(_lookup("bcrypt_rounds", 12))

"""
Session Settings

Engine-facing configuration, built from ApplicationConfig.
"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from session_engine.app.services.authorization import simple_roles_is_authorized
from session_engine.domain.entities import CsrfMethod, SameSite
from session_engine.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32
PRODUCTION = "production"


class SessionSettings(BaseModel):
    """
    Recognized session options.

    secure_cookies=None resolves to True in production and False otherwise.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    secret_key: Optional[str] = None
    environment: str = "development"
    cookie_prefix: str = "session"
    session_expiry_minutes: int = 43200
    same_site: SameSite = SameSite.lax
    method: CsrfMethod = CsrfMethod.essential
    secure_cookies: Optional[bool] = None
    domain: Optional[str] = None
    public_data_keys_to_sync: List[str] = Field(default_factory=lambda: ["role", "roles"])
    is_authorized: Callable[..., bool] = simple_roles_is_authorized
    token_issuer: str = "session-engine"
    token_audience: str = "session-engine"

    @field_validator("session_expiry_minutes")
    @classmethod
    def _positive_expiry(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("session_expiry_minutes must be positive")
        return value

    @classmethod
    def from_config(cls, config, is_authorized: Callable[..., bool] = None) -> "SessionSettings":
        values = dict(
            secret_key=config.SESSION_SECRET_KEY,
            environment=config.ENVIRONMENT,
            cookie_prefix=config.SESSION_COOKIE_PREFIX,
            session_expiry_minutes=int(config.SESSION_EXPIRY_MINUTES),
            same_site=config.SESSION_SAME_SITE,
            method=config.SESSION_CSRF_METHOD,
            secure_cookies=config.SESSION_SECURE_COOKIES,
            domain=config.SESSION_DOMAIN,
            public_data_keys_to_sync=list(config.SESSION_PUBLIC_DATA_KEYS_TO_SYNC),
        )
        if is_authorized is not None:
            values["is_authorized"] = is_authorized
        return cls(**values)

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @property
    def use_secure_cookies(self) -> bool:
        if self.secure_cookies is None:
            return self.is_production
        return self.secure_cookies

    @property
    def access_token_cookie(self) -> str:
        return f"{self.cookie_prefix}.session"

    @property
    def anti_csrf_cookie(self) -> str:
        return f"{self.cookie_prefix}.anti-csrf"

    @property
    def anonymous_cookie(self) -> str:
        return f"{self.cookie_prefix}.anon-session"

    @property
    def public_data_cookie(self) -> str:
        return f"{self.cookie_prefix}.public-data"

    def validate_for_startup(self) -> None:
        """
        Raises:
            ConfigurationError: production without a signing secret of at
                least 32 characters
        """
        if not self.is_production:
            if not self.secret_key:
                raise ConfigurationError("SESSION_SECRET_KEY is required")
            return

        if not self.secret_key or len(self.secret_key) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"SESSION_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters in production"
            )
        if self.same_site == SameSite.none and not self.use_secure_cookies:
            logger.warning("SameSite=None cookies without Secure will be rejected by browsers")

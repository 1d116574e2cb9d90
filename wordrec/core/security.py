import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from wordrec.core.config import Settings, settings

logger = logging.getLogger(__name__)

TOKEN_ISSUER = "wordrec"


class SecurityManager:
    """JWT access token issuing and verification"""

    def __init__(self, config: Settings | None = None, access_token_expire_minutes: int = 30):
        config = config or settings
        self.secret_key = config.secret_key
        self.algorithm = config.jwt_algorithm
        self.issuer = TOKEN_ISSUER
        self.access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(
        self, data: dict[str, Any], expires_delta: timedelta | None = None
    ) -> str:
        """Create a signed access token"""
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))

        to_encode.update({"exp": expire, "iat": now, "iss": self.issuer, "type": "access"})

        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        """Decode an access token, returning None when it is not acceptable"""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "iss", "type"]},
            )

            if payload.get("type") != "access":
                logger.warning("Invalid token type")
                return None

            return payload
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired")
            return None
        except jwt.InvalidIssuerError:
            logger.warning("Invalid token issuer")
            return None
        except jwt.MissingRequiredClaimError as e:
            logger.warning(f"Missing required claim: {e}")
            return None
        except jwt.PyJWTError as e:
            logger.warning(f"Invalid token: {e}")
            return None


security = SecurityManager()

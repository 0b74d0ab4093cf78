from __future__ import annotations

import logging
from datetime import timedelta

import jwt

from teamtasks.domain.common.errors import AuthenticationError
from teamtasks.domain.tasks.ports import Clock
from teamtasks.domain.users.models import User
from teamtasks.domain.users.ports import IdentityProvider, UserDirectory

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JwtIdentityProvider(IdentityProvider):
    """
    HS256 session tokens carrying the user id and role.

    The role claim is informational; `resolve` always returns the role
    currently stored for the user.
    """

    def __init__(self, secret: str, users: UserDirectory, clock: Clock, ttl: timedelta) -> None:
        self._secret = secret
        self._users = users
        self._clock = clock
        self._ttl = ttl

    def issue(self, user: User) -> str:
        now = self._clock.now()
        claims = {
            "id": user.id,
            "role": user.role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    async def resolve(self, token: str) -> User:
        if not token:
            raise AuthenticationError("Not authorized, no token")
        try:
            claims = jwt.decode(token, self._secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expired") from None
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected: %s", e)
            raise AuthenticationError("Not authorized, invalid token") from None

        user_id = claims.get("id")
        if not isinstance(user_id, str) or not user_id:
            raise AuthenticationError("Not authorized, invalid token")

        user = await self._users.get(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("User account is inactive")
        return user

"""Development auth stub — dev tokens resolve to users, admin is granted by id.

Token format (development only):
    "<anything else>"   the shared development coder, FAKE_USER_ID
    "as:<user_id>"      that user, for trying several accounts locally

The admin capability never comes from the token text. It is granted per
user id at construction (or with grant_admin), and the resolved User
carries it as role="admin". Routes ask user.is_admin and nothing else.

TEAM: Replace this with your identity provider. Subclass AuthService from
codequest.hooks.interfaces; validate_token must resolve both the caller's
id and whether they hold the admin capability.

Tier 2 service module: imports from codequest.hooks.interfaces (Tier 1)
and codequest.schemas (Tier 1).

Usage:
    from codequest.hooks.auth import FakeAuthService

    auth = FakeAuthService()                          # nobody is admin
    auth = FakeAuthService(admin_ids={FAKE_USER_ID})  # the dev coder is admin
"""

from collections.abc import Iterable

from codequest.hooks.interfaces import AuthService
from codequest.schemas import User

FAKE_USER_ID = "fake-user-1"

_AS_PREFIX = "as:"


class FakeAuthService(AuthService):
    """STUB — trusts every non-empty token, grants admin from a fixed set.

    TEAM: Replace with your identity provider.
    """

    def __init__(self, admin_ids: Iterable[str] = ()) -> None:
        """Initialises the stub.

        Args:
            admin_ids: User ids that hold the admin capability.
        """
        self._admin_ids = set(admin_ids)

    def grant_admin(self, user_id: str) -> None:
        """Gives one user the admin capability. Stub convenience."""
        self._admin_ids.add(user_id)

    async def validate_token(self, token: str) -> User | None:
        """Resolves a dev token to its user.

        Returns:
            The user the token names, None for an empty token or an empty
            "as:" id.
        """
        token = token.strip()
        if not token:
            return None
        if token.startswith(_AS_PREFIX):
            return self._resolve(token[len(_AS_PREFIX):])
        return self._resolve(FAKE_USER_ID)

    async def get_user(self, user_id: str) -> User | None:
        return self._resolve(user_id)

    def _resolve(self, user_id: str) -> User | None:
        if not user_id:
            return None
        if user_id in self._admin_ids:
            return User(id=user_id, role="admin", name=f"Admin {user_id}")
        return User(id=user_id, role="user", name=f"Coder {user_id}")

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import api.auth as auth
from api.client import ApiResult
from api.models import User
from api.statuses import Role


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens.

    Fields:
      - user: profile of the logged-in user, None before login
      - role: role of that user, decides which modes the sidebar offers
    Tokens themselves live in the local store, not here.
    """

    user: Optional[User] = None
    role: Optional[Role] = None

    @property
    def uid(self) -> Optional[int]:
        return self.user.id if self.user else None

    async def restore(self) -> bool:
        """
        Resume a previous login if a token is stored.
        The profile is refetched so an expired token is noticed here.
        """
        if not await auth.is_logged_in():
            return False
        result = await auth.get_me()
        if not result.is_success:
            refreshed = await auth.refresh()
            if not refreshed.is_success:
                await auth.logout()
                return False
            result = await auth.get_me()
            if not result.is_success:
                return False
        self._set_user(result.data)
        return True

    async def login(self, email: str, password: str) -> ApiResult[User]:
        result = await auth.login(email, password)
        if not result.is_success:
            return ApiResult.fail(result.message)
        me = await auth.get_me()
        if me.is_success:
            self._set_user(me.data)
        return me

    async def logout(self) -> None:
        await auth.logout()
        self.user = None
        self.role = None

    def _set_user(self, user: User) -> None:
        self.user = user
        self.role = user.role or Role.CUSTOMER

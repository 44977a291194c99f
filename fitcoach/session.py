# -*- coding: utf-8 -*-
"""Auth session store.

Holds the signed-in user and profile. The last user and profile are cached so
a cold start without connectivity can still resolve who is signed in.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .backend import first_row
from .cache.keys import CacheKeys
from .cache.store import CacheStore

logger = logging.getLogger(__name__)


class AuthSession:
    def __init__(self, cache: CacheStore) -> None:
        self.cache = cache
        self.user: Optional[Dict[str, Any]] = None
        self.profile: Optional[Dict[str, Any]] = None

    @property
    def user_id(self) -> Optional[str]:
        return str(self.user["id"]) if self.user and self.user.get("id") else None

    @property
    def profile_id(self) -> Optional[str]:
        return str(self.profile["id"]) if self.profile and self.profile.get("id") else None

    @property
    def is_signed_in(self) -> bool:
        return self.user_id is not None

    def restore(self) -> bool:
        """Cold start from the cached last user/profile. Returns True if a user was restored."""
        user = self.cache.get_cache(CacheKeys.last_user)
        if not user:
            return False
        self.user = user
        self.profile = self.cache.get_cache(CacheKeys.last_profile)
        logger.info("Restored cached session for user %s", self.user_id)
        return True

    def sign_in(self, user: Dict[str, Any], profile: Optional[Dict[str, Any]] = None) -> None:
        self.user = dict(user)
        self.profile = dict(profile) if profile else None
        self.cache.set_cache(CacheKeys.last_user, self.user)
        self.cache.set_cache(CacheKeys.last_user_id, self.user_id)
        if self.profile:
            self.cache.set_cache(CacheKeys.last_profile, self.profile)

    async def refresh_profile(self, client: Any) -> Optional[Dict[str, Any]]:
        """Re-read the profile row for the signed-in user and cache it."""
        if not self.user_id:
            return None
        response = await client.table("profiles").select("*").eq("user_id", self.user_id).limit(1).execute()
        profile = first_row(response)
        if profile:
            self.profile = profile
            self.cache.set_cache(CacheKeys.last_profile, profile)
        return profile

    def sign_out(self) -> None:
        user_id = self.user_id
        if user_id:
            removed = self.cache.clear_user_cache(user_id)
            logger.info("Cleared %d cache entries for user %s", removed, user_id)
        for key in (CacheKeys.last_user, CacheKeys.last_user_id, CacheKeys.last_profile):
            self.cache.delete_cache(key)
        self.user = None
        self.profile = None

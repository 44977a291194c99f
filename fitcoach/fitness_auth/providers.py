# -*- coding: utf-8 -*-
"""Fitness device OAuth providers. Client secrets never leave the server."""

from __future__ import annotations

from typing import Dict, NamedTuple, Optional

from ..config import settings

FITBIT_REVOKE_URL = "https://api.fitbit.com/oauth2/revoke"
GOOGLE_REVOKE_URL = "https://accounts.google.com/o/oauth2/revoke"


class FitnessProvider(NamedTuple):
    name: str
    client_id: Optional[str]
    client_secret: Optional[str]
    token_url: str


def get_providers() -> Dict[str, FitnessProvider]:
    return {
        "fitbit": FitnessProvider(
            "fitbit",
            settings.fitbit_client_id,
            settings.fitbit_client_secret,
            "https://api.fitbit.com/oauth2/token",
        ),
        "garmin": FitnessProvider(
            "garmin",
            settings.garmin_client_id,
            settings.garmin_client_secret,
            "https://connectapi.garmin.com/oauth-service/oauth/token",
        ),
        "google_fit": FitnessProvider(
            "google_fit",
            settings.google_fit_client_id,
            settings.google_fit_client_secret,
            "https://oauth2.googleapis.com/token",
        ),
    }


def get_provider(name: Optional[str]) -> Optional[FitnessProvider]:
    if not name:
        return None
    return get_providers().get(name)

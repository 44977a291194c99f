from __future__ import annotations

import os
from pathlib import Path
from typing import List


class Settings:
    """Centralized configuration for the fitcoach data layer and API."""

    def __init__(self) -> None:
        base_dir = Path(__file__).resolve().parent
        repo_root = base_dir.parent
        data_root_default = repo_root / "data"

        # ---- Local device storage (cache + sync queue) ----
        self.data_root: Path = Path(
            os.environ.get("FITCOACH_DATA_ROOT") or data_root_default
        ).expanduser()
        self.db_path: Path = Path(
            os.environ.get("FITCOACH_DB_PATH") or (self.data_root / "fitcoach.db")
        ).expanduser()

        # ---- Hosted backend (Supabase) ----
        self.supabase_url: str | None = os.environ.get("SUPABASE_URL")
        self.supabase_key: str | None = os.environ.get("SUPABASE_KEY")

        # ---- OpenRouter (program / meal plan generation) ----
        self.openrouter_api_key: str | None = os.environ.get("OPENROUTER_API_KEY")
        self.openrouter_base_url: str = os.environ.get(
            "OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"
        )
        self.openrouter_program_model: str = os.environ.get(
            "OPENROUTER_PROGRAM_MODEL", "openai/gpt-4o-mini"
        )
        self.openrouter_meal_model: str = os.environ.get(
            "OPENROUTER_MEAL_MODEL", "anthropic/claude-opus-4"
        )
        self.openrouter_timeout: float = float(os.environ.get("OPENROUTER_TIMEOUT", "300"))
        self.openrouter_temperature: float = float(os.environ.get("OPENROUTER_TEMPERATURE", "0.7"))
        self.openrouter_max_tokens: int = int(os.environ.get("OPENROUTER_MAX_TOKENS", "4000"))
        self.openrouter_referer: str = os.environ.get("OPENROUTER_REFERER", "http://localhost:8000")
        self.openrouter_title: str = os.environ.get("OPENROUTER_TITLE", "ENG")

        # ---- Food / exercise data sources ----
        self.usda_api_key: str | None = os.environ.get("USDA_API_KEY")
        self.usda_base_url: str = os.environ.get("USDA_BASE_URL", "https://api.nal.usda.gov/fdc/v1")
        self.off_base_url: str = os.environ.get("OFF_BASE_URL", "https://world.openfoodfacts.org")
        self.off_user_agent: str = os.environ.get(
            "OFF_USER_AGENT", "fitcoach-food-database/0.1 (contact@example.com)"
        )
        self.off_search_timeout: float = float(os.environ.get("OFF_SEARCH_TIMEOUT", "8"))
        self.heygainz_base_url: str = os.environ.get(
            "HEYGAINZ_BASE_URL", "https://svc.heygainz.com/api"
        )

        # ---- Fitness device OAuth providers (secrets stay server side) ----
        self.fitbit_client_id: str | None = os.environ.get("FITBIT_CLIENT_ID")
        self.fitbit_client_secret: str | None = os.environ.get("FITBIT_CLIENT_SECRET")
        self.garmin_client_id: str | None = os.environ.get("GARMIN_CLIENT_ID")
        self.garmin_client_secret: str | None = os.environ.get("GARMIN_CLIENT_SECRET")
        self.google_fit_client_id: str | None = os.environ.get("GOOGLE_FIT_CLIENT_ID")
        self.google_fit_client_secret: str | None = os.environ.get("GOOGLE_FIT_CLIENT_SECRET")

        # ---- Server / logging ----
        self.port: int = int(os.environ.get("PORT") or "5000")
        self.log_level: str = (os.environ.get("FITCOACH_LOG_LEVEL") or "INFO").upper()
        self.log_file: Path | None = (
            Path(os.environ["FITCOACH_LOG_FILE"]).expanduser()
            if os.environ.get("FITCOACH_LOG_FILE")
            else None
        )

        cors = os.environ.get("FITCOACH_CORS_ORIGINS", "*")
        if cors.strip() == "*":
            self.cors_origins: List[str] = ["*"]
        else:
            self.cors_origins = [
                origin.strip() for origin in cors.split(",") if origin.strip()
            ]


settings = Settings()

import os
from functools import lru_cache
from typing import Optional


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        # Google Sheets backing store for releases
        self.GOOGLE_SPREADSHEET_ID: Optional[str] = _optional("GOOGLE_SPREADSHEET_ID")
        self.RELEASES_SHEET_NAME: str = os.getenv("RELEASES_SHEET_NAME", "Releases")

        # Google Drive folder receiving cover art and audio uploads
        self.GOOGLE_DRIVE_FOLDER_ID: Optional[str] = _optional("GOOGLE_DRIVE_FOLDER_ID")

        # OAuth client, only needed to exchange refresh tokens
        self.GOOGLE_CLIENT_ID: Optional[str] = _optional("GOOGLE_CLIENT_ID")
        self.GOOGLE_CLIENT_SECRET: Optional[str] = _optional("GOOGLE_CLIENT_SECRET")

        self.GOOGLE_API_TIMEOUT: float = float(os.getenv("GOOGLE_API_TIMEOUT", "30"))
        self.CORS_ALLOWED_ORIGINS_CSV: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def CORS_ALLOWED_ORIGINS(self) -> list[str]:
        return [
            origin.strip()
            for origin in self.CORS_ALLOWED_ORIGINS_CSV.split(",")
            if origin.strip()
        ]

    @property
    def GOOGLE_REFRESH_ENABLED(self) -> bool:
        return bool(self.GOOGLE_CLIENT_ID and self.GOOGLE_CLIENT_SECRET)


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

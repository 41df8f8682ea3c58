import os
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator


_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    development: bool = Field(default=False, alias="DEVELOPMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    supabase_dev_url: Optional[str] = Field(default=None, alias="SUPABASE_DEV_URL")
    supabase_dev_key: Optional[str] = Field(default=None, alias="SUPABASE_DEV_KEY")
    supabase_prod_url: Optional[str] = Field(default=None, alias="SUPABASE_PROD_URL")
    supabase_prod_key: Optional[str] = Field(default=None, alias="SUPABASE_PROD_KEY")

    @field_validator("development", "debug", mode="before")
    @classmethod
    def _flag(cls, value):
        # An unset or empty flag is off; anything else is checked against _TRUTHY.
        if isinstance(value, bool):
            return value
        return str(value or "").strip().lower() in _TRUTHY

    @property
    def env(self) -> str:
        return "development" if self.development else "production"

    def supabase_credentials(self) -> Tuple[str, str]:
        """
        Return (url, key) for the environment selected by DEVELOPMENT.
        """
        if self.development:
            pair = (self.supabase_dev_url, self.supabase_dev_key)
            names = ("SUPABASE_DEV_URL", "SUPABASE_DEV_KEY")
        else:
            pair = (self.supabase_prod_url, self.supabase_prod_key)
            names = ("SUPABASE_PROD_URL", "SUPABASE_PROD_KEY")

        missing = [name for name, value in zip(names, pair) if not value]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables for {self.env}: {', '.join(missing)}"
            )
        return pair


def _load_dotenv():
    # Load from repo root if present, otherwise rely on environment variables.
    root_env = Path(__file__).resolve().parents[1] / ".env"
    if root_env.exists():
        load_dotenv(root_env)
    else:
        load_dotenv()


@lru_cache()
def get_settings() -> Settings:
    _load_dotenv()
    try:
        return Settings(**os.environ)
    except ValidationError as exc:
        invalid = [str(e["loc"][0]) for e in exc.errors()]
        detail = f"Invalid environment variables: {', '.join(invalid)}"
        raise RuntimeError(detail) from exc

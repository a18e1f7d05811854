from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from clinicsync.domain.models import ViewMode


class BackendAdapter(Enum):
    HTTP = "http"
    FAKE = "fake"


class BackendConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CLINIC_API_", env_file=".env", extra="ignore")

    url: str = "http://localhost:8080/api/v1"
    token: str = ""
    timeout_seconds: float = 30.0
    adapter: BackendAdapter = BackendAdapter.HTTP


class CalendarConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLINIC_CALENDAR_", env_file=".env", extra="ignore"
    )

    debounce_seconds: float = 1.0
    page_size: int = Field(default=1000, gt=0)
    max_pages: int = Field(default=10, gt=0)
    include_holidays: bool = True
    initial_view: ViewMode = ViewMode.WEEK
    # 0 = Monday ... 6 = Sunday
    week_starts_on: int = Field(default=0, ge=0, le=6)


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    clinic_timezone: str = "Asia/Ho_Chi_Minh"
    backend: BackendConfig = Field(default_factory=lambda: BackendConfig())
    calendar: CalendarConfig = Field(default_factory=lambda: CalendarConfig())

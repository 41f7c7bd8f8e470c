import os
import logging
from pydantic import BaseModel, Field
from typing import List
from dotenv import load_dotenv

load_dotenv()


class EngineSettings(BaseModel):
    """Knobs of the eligibility engine. Values are read once at import time."""
    min_data_year: int = Field(default=int(os.getenv("MIN_DATA_YEAR", "2021")))
    max_data_year: int = Field(default=int(os.getenv("MAX_DATA_YEAR", "2025")))
    tenure_window_cap: int = Field(default=int(os.getenv("TENURE_WINDOW_CAP", "5")))
    default_grade_points: float = Field(default=float(os.getenv("DEFAULT_GRADE_POINTS", "2")))
    auto_select_policy: str = Field(default=os.getenv("AUTO_SELECT_POLICY", "both"))
    recalc_chunk_size: int = Field(default=int(os.getenv("RECALC_CHUNK_SIZE", "200")))


class Config(BaseModel):
    app_name: str = "Level-Up Review Engine"
    environment: str = os.getenv("APP_ENV", "development")
    api_prefix: str = "/api"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./levelup.db")

    # Eligibility engine
    engine: EngineSettings = EngineSettings()

    version: str = "1.0.0"
    build_id: str = os.getenv("BUILD_ID", "local")
    request_id_header: str = "X-Request-ID"

    # Identity headers forwarded by the authentication gateway
    user_id_header: str = "X-User-Id"
    user_role_header: str = "X-User-Role"
    user_department_header: str = "X-User-Department"

    # CORS: comma-separated origins loaded from env.
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            o.strip()
            for o in os.getenv(
                "CORS_ORIGINS",
                "http://localhost:3000,http://127.0.0.1:3000",
            ).split(",")
            if o.strip()
        ]
    )

    rate_limit_per_minute: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    @property
    def grade_years(self) -> List[int]:
        return list(range(self.engine.min_data_year, self.engine.max_data_year + 1))


settings = Config()

# --- Startup Validation for Production ---
_logger = logging.getLogger(__name__)
if settings.environment == "production" and settings.database_url.startswith("sqlite"):
    raise RuntimeError(
        "FATAL: DATABASE_URL must point at a server database in production, "
        "SQLite is only supported for development and testing."
    )
if settings.engine.auto_select_policy not in ("point", "credit", "both", "any"):
    _logger.warning(
        f"Unknown AUTO_SELECT_POLICY '{settings.engine.auto_select_policy}', falling back to 'both'"
    )
    settings.engine.auto_select_policy = "both"

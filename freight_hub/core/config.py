from pathlib import Path
from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


ENV_PATH = Path(__file__).resolve().parents[2] / ".env"

ENVIRONMENT_URLS = {
    "production": "https://api.timocom.com",
    "sandbox": "https://sandbox.timocom.com",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=ENV_PATH, env_file_encoding="utf-8", extra="ignore")

    # App
    env: str = "dev"
    service_name: str = "freight-hub"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"

    # Freight exchange credentials
    timocom_username: str = ""
    timocom_password: SecretStr = SecretStr("")
    timocom_id: str = ""
    timocom_env: str = "production"
    timocom_timeout_ms: int = 15_000

    # CSV data
    data_dir: Path = Path("data")
    max_upload_bytes: int = 10 * 1024 * 1024

    # Consolidation exports land in named directories below this root
    export_dir: Path = Path("exports")

    # Bulk pacing (seconds)
    bulk_max_concurrent: int = 5
    bulk_retry_delay_seconds: float = 1.0
    bulk_batch_delay_seconds: float = 1.0
    delete_all_delay_seconds: float = 0.5

    # Telemetry
    telemetry_enabled: bool = True
    otlp_endpoint: str = "http://localhost:4318"  # Jaeger OTLP HTTP

    @property
    def timocom_base_url(self) -> str:
        return ENVIRONMENT_URLS.get(self.timocom_env.lower().strip(), ENVIRONMENT_URLS["production"])


settings = Settings()

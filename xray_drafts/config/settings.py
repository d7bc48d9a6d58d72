from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # API Configuration
    debug: bool = False
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    api_prefix: str = "/api"

    # Local storage. Drafts, settings and credentials all live under data_root.
    data_root: Path = Path(".")
    drafts_dirname: str = "testCases"
    config_dirname: str = "config"

    # Xray Cloud Integration (credentials are saved through /api/config, not env)
    xray_base_url: str = "https://xray.cloud.getxray.app"
    xray_request_timeout_seconds: float = 30.0
    xray_import_timeout_seconds: float = 60.0
    xray_job_poll_attempts: int = 30
    xray_job_poll_interval_seconds: float = 2.0
    xray_graphql_page_limit: int = 100

    # Rate limiting for credential checks
    test_connection_max_attempts: int = 5
    test_connection_window_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def drafts_dir(self) -> Path:
        return self.data_root / self.drafts_dirname

    @property
    def config_dir(self) -> Path:
        return self.data_root / self.config_dirname

    @property
    def settings_path(self) -> Path:
        return self.config_dir / "settings.json"

    @property
    def xray_config_path(self) -> Path:
        return self.config_dir / "xray-config.json"


# Global settings instance
settings = Settings()

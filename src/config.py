import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

CONFIG_PATH_ENV = "ATTENDANCE_CONFIG"
DEFAULT_CONFIG_PATH = "config.yaml"

def config_path() -> str:
    return os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        case_sensitive = False, # Make environment variable names case-insensitive
        env_file = ".env", # Load environment variables from .env file, if available
        extra = "ignore", # Ignore any extra fields not defined in the model
    )

    # Env vars use the upper-cased field name (DB_PATH, SENDGRID_API_KEY, ...)
    app_env: str = Field(pattern=r'^(development|production)$', default="development")
    log_level: str = "INFO"

    # Server. An empty token list puts the endpoint in open-access mode
    allowed_authorization_tokens: List[str] = Field(default_factory=list)
    bind_addr: str = ":8080"
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    # SQLite database file, created on first start
    db_path: str = "db.sqlite3"

    # Mail delivery, "smtp" (default, like a local MTA on port 25) or "sendgrid"
    mail_transport: str = Field(default="smtp", pattern=r'^(smtp|sendgrid)$')
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_starttls: bool = False
    sendgrid_api_key: Optional[str] = None

    # Confirmation message
    mail_from: str = "Privacy Seminar <no-reply@metrics.privacybydesign.foundation>"
    mail_subject: str = "Your presence at Privacy and Identity"

    # Background notification workers
    notification_queue_size: int = Field(default=100, gt=0)
    notification_workers: int = Field(default=2, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # The YAML file is the lowest priority source, env vars can override any key
        # Missing files are skipped, the CLI checks for existence before startup
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlKeysConfigSource(settings_cls, yaml_file=config_path()),
            file_secret_settings,
        )

    @property
    def open_access(self) -> bool:
        return not self.allowed_authorization_tokens

class YamlKeysConfigSource(YamlConfigSettingsSource):
    """
    YAML source that also accepts the squashed key spellings of older config
    files (bindaddr, dbpath, AllowedAuthorizationTokens, ...). Keys are renamed
    to field names before the sources are merged, so env vars still win.
    """

    def _read_file(self, file_path: Path) -> Dict[str, Any]:
        data = super()._read_file(file_path) or {}
        field_names = {name.replace("_", ""): name for name in self.settings_cls.model_fields}
        renamed: Dict[str, Any] = {}
        for key, value in data.items():
            squashed = str(key).lower().replace("_", "")
            renamed[field_names.get(squashed, key)] = value
        return renamed

def parse_bind_addr(bind_addr: str) -> Tuple[str, int]:
    """
    Split a listen address like ":9090" or "127.0.0.1:9090" into (host, port).
    An empty host binds every interface.
    """
    host, sep, port = bind_addr.rpartition(":")
    if not sep or not port:
        raise ValueError(f"Invalid bind address: {bind_addr!r}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in bind address: {bind_addr!r}")
    return (host.strip("[]") or "0.0.0.0"), port_num

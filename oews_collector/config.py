"""
Configuration Management for the OEWS Collector
Uses Pydantic Settings for type-safe configuration with environment variable support
"""
from datetime import datetime
from typing import Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oews_collector.exceptions import ConfigurationError


# BLS API hard limits
MAX_SERIES_PER_REQUEST = 50
MAX_YEARS_PER_REQUEST = 20


class DatabaseSettings(BaseSettings):
    """Database configuration"""
    url: str = Field(..., alias='DATABASE_URL')
    pool_size: int = Field(10, alias='DB_POOL_SIZE', ge=1)
    max_overflow: int = Field(5, alias='DB_MAX_OVERFLOW', ge=0)
    pool_timeout: int = Field(30, alias='DB_POOL_TIMEOUT', ge=1)
    statement_timeout_ms: int = Field(300000, alias='DB_STATEMENT_TIMEOUT_MS', ge=0)
    echo: bool = Field(False, alias='DB_ECHO')
    pool_pre_ping: bool = True
    pool_recycle: int = 3600

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


class BLSSettings(BaseSettings):
    """BLS API and bulk download configuration"""
    api_key: str = Field(..., alias='BLS_API_KEY', min_length=1)
    api_base_url: str = Field('https://api.bls.gov/publicAPI/v2', alias='BLS_API_BASE_URL')
    bulk_base_url: str = Field('https://download.bls.gov/pub/time.series/oe', alias='BLS_BULK_BASE_URL')
    user_agent: str = Field('OEWSCollector/1.0 (+contact: data@example.org)', alias='BLS_USER_AGENT')

    timeout: int = Field(60, alias='API_TIMEOUT', ge=1)
    retries: int = Field(0, alias='API_RETRIES', ge=0)
    backoff: float = Field(1.0, alias='API_BACKOFF', gt=0)

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    @field_validator('api_key')
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('BLS_API_KEY must not be blank')
        return v


class BulkDownloadSettings(BaseSettings):
    """Bulk flat-file download configuration (no API key needed)"""
    bulk_base_url: str = Field('https://download.bls.gov/pub/time.series/oe', alias='BLS_BULK_BASE_URL')
    user_agent: str = Field('OEWSCollector/1.0 (+contact: data@example.org)', alias='BLS_USER_AGENT')
    timeout: int = Field(60, alias='API_TIMEOUT', ge=1)

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


class LoaderSettings(BaseSettings):
    """Bulk file loading configuration"""
    batch_size: Optional[int] = Field(None, alias='LOADER_BATCH_SIZE', ge=1)  # None: per file kind
    bulk_data_path: str = Field('data/bulk/oe', alias='BULK_DATA_PATH')
    max_workers: int = Field(1, alias='LOADER_MAX_WORKERS', ge=1)

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


class CrawlSettings(BaseSettings):
    """Wage crawl configuration"""
    batch_size: int = Field(MAX_SERIES_PER_REQUEST, alias='CRAWL_BATCH_SIZE', ge=1, le=MAX_SERIES_PER_REQUEST)
    start_year: int = Field(default_factory=lambda: datetime.now().year - 5, alias='CRAWL_START_YEAR')
    end_year: int = Field(default_factory=lambda: datetime.now().year, alias='CRAWL_END_YEAR')
    max_workers: int = Field(1, alias='CRAWL_MAX_WORKERS', ge=1)

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    @model_validator(mode='after')
    def validate_year_range(self) -> 'CrawlSettings':
        if self.end_year < self.start_year:
            raise ValueError('CRAWL_END_YEAR must be >= CRAWL_START_YEAR')
        if self.end_year - self.start_year + 1 > MAX_YEARS_PER_REQUEST:
            raise ValueError(f'crawl year span must not exceed {MAX_YEARS_PER_REQUEST} years')
        return self


class AppSettings(BaseSettings):
    """Main application settings"""
    environment: str = Field('development', alias='ENVIRONMENT')
    log_level: str = Field('INFO', alias='LOG_LEVEL')
    log_file_path: Optional[str] = Field('logs/oews_collector.log', alias='LOG_FILE_PATH')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v = v.upper()
        if v not in valid_levels:
            raise ValueError(f'log_level must be one of {valid_levels}')
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        valid_envs = ['development', 'test', 'staging', 'production']
        v = v.lower()
        if v not in valid_envs:
            raise ValueError(f'environment must be one of {valid_envs}')
        return v

    model_config = SettingsConfigDict(env_file='.env', extra='ignore')


def _build(settings_cls):
    """Instantiate a settings group, converting pydantic errors to ConfigurationError."""
    try:
        return settings_cls()  # type: ignore[call-arg]
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(part) for part in err.get('loc', ())) or settings_cls.__name__
            problems.append(f"{field}: {err.get('msg')}")
        raise ConfigurationError(
            f"Invalid {settings_cls.__name__} configuration: " + "; ".join(problems)
        ) from e


class Settings:
    """Centralized settings manager; each group is loaded on first access"""
    _database: Optional[DatabaseSettings] = None
    _bls: Optional[BLSSettings] = None
    _download: Optional[BulkDownloadSettings] = None
    _loader: Optional[LoaderSettings] = None
    _crawl: Optional[CrawlSettings] = None
    _app: Optional[AppSettings] = None

    @property
    def database(self) -> DatabaseSettings:
        if self._database is None:
            self._database = _build(DatabaseSettings)
        return self._database

    @property
    def bls(self) -> BLSSettings:
        if self._bls is None:
            self._bls = _build(BLSSettings)
        return self._bls

    @property
    def download(self) -> BulkDownloadSettings:
        if self._download is None:
            self._download = _build(BulkDownloadSettings)
        return self._download

    @property
    def loader(self) -> LoaderSettings:
        if self._loader is None:
            self._loader = _build(LoaderSettings)
        return self._loader

    @property
    def crawl(self) -> CrawlSettings:
        if self._crawl is None:
            self._crawl = _build(CrawlSettings)
        return self._crawl

    @property
    def app(self) -> AppSettings:
        if self._app is None:
            self._app = _build(AppSettings)
        return self._app

    def reset(self):
        """Drop cached groups so the next access re-reads the environment"""
        self._database = None
        self._bls = None
        self._download = None
        self._loader = None
        self._crawl = None
        self._app = None


# Global settings instance
settings = Settings()

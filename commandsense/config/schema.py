"""Configuration schema using Pydantic."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings

from commandsense.utils.helpers import get_data_path


class Base(BaseModel):
    """Base model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UnderstandingConfig(Base):
    """Configuration for the local understanding stages."""
    local_confidence_threshold: float = Field(default=0.8, ge=0.0, le=1.0)  # Skip the remote classifier at or above this
    clarification_threshold: float = Field(default=0.5, ge=0.0, le=1.0)  # Ask a follow-up question below this
    max_typo_distance: int = Field(default=2, ge=0)
    history_size: int = Field(default=10, ge=1)
    data_dir: str = "~/.commandsense"  # preferences.json and context_history.json live here


class RemoteClassifierConfig(Base):
    """Configuration for the remote LLM classifier."""
    enabled: bool = True
    model: str = "gpt-3.5-turbo"
    timeout_s: float = Field(default=5.0, gt=0)
    max_tokens: int = 300
    temperature: float = 0.2
    json_mode: bool = True  # Ask the backend for a JSON-object reply where supported


class LoggingConfig(Base):
    """Console and file log sinks."""
    level: str = "WARNING"
    verbose: bool = False
    file: str = ""  # Empty means commandsense.log in the data dir
    rotation: str = "10 MB"
    retention: str = "1 week"


class ProviderConfig(Base):
    """LLM provider configuration."""
    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] | None = None  # Custom headers (e.g. gateway app codes)


class Config(BaseSettings):
    """Root configuration for commandsense."""
    understanding: UnderstandingConfig = Field(default_factory=UnderstandingConfig)
    remote: RemoteClassifierConfig = Field(default_factory=RemoteClassifierConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def data_path(self) -> Path:
        """Get expanded data directory path."""
        return get_data_path(self.understanding.data_dir)

    @property
    def log_path(self) -> Path:
        """Log file path, defaulting into the data directory."""
        if self.logging.file:
            return Path(self.logging.file).expanduser()
        return self.data_path / "commandsense.log"

    @property
    def remote_configured(self) -> bool:
        """True when the remote classifier is enabled and has a credential."""
        return self.remote.enabled and bool(self.provider.api_key)

    model_config = ConfigDict(
        env_prefix="COMMANDSENSE_",
        env_nested_delimiter="__"
    )

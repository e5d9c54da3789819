"""Application configuration schema."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(extra="forbid")

    level: str = Field("INFO", description="Logging level")
    destination: Literal["console", "file", "both"] = Field(
        "console", description="Where to send logs; the console handler writes to stderr"
    )
    directory: Optional[str] = Field(None, description="Directory for log files")
    filename: str = Field("ovirt-api-model.log", description="Log file name")
    json_format: bool = Field(False, description="Render log records as JSON")

    @field_validator("level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        value = value.upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(_LOG_LEVELS)}")
        return value


class ModelConfig(BaseModel):
    """Where the service declarations are read from."""

    model_config = ConfigDict(extra="forbid")

    catalog_path: Optional[str] = Field(
        None, description="Catalogue directory or document; the packaged catalogue when unset"
    )
    strict_docs: bool = Field(False, description="Warn about undocumented services and operations")


class DocsConfig(BaseModel):
    """Generated documentation settings."""

    model_config = ConfigDict(extra="forbid")

    output_file: str = Field(
        "target/generated-html/model.html", description="Rendered HTML reference"
    )
    title: Optional[str] = Field(None, description="Page title; derived from the model when unset")


class PublishConfig(BaseModel):
    """Settings of the documentation publisher."""

    model_config = ConfigDict(extra="forbid")

    repository: str = Field(
        "git@github.com:oVirt/ovirt-engine-api-model.git",
        description="Repository hosting the documentation branch",
    )
    branch: str = Field("gh-pages", description="Documentation branch")
    checkout_dir: str = Field("gh-pages", description="Where the documentation branch is cloned")
    encrypted_key_file: str = Field(
        ".travis/travis_rsa.enc", description="Encrypted SSH deploy key"
    )
    key_file: str = Field(".travis/travis_rsa", description="Decrypted SSH deploy key")
    key_env_var: str = Field("ENCRYPTED_KEY", description="Variable holding the cipher key")
    iv_env_var: str = Field("ENCRYPTED_IV", description="Variable holding the cipher IV")
    git_user_name: str = Field("oVirt Engine API Model", description="Commit author name")
    git_user_email: str = Field(
        "ovirt-engine-api-model@travis-ci.org", description="Commit author email"
    )


class AppConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(extra="forbid")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    docs: DocsConfig = Field(default_factory=DocsConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)

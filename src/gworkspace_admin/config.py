"""Named YAML configurations.

A configuration describes how to authenticate (delegated service account or
interactive user) and the tuning knobs used by batch and recursive commands.
``<name>.yaml`` is looked up in the working directory first and then in the
configuration directory (``~/.config/gworkspace-admin`` or
``$GWSADMIN_CONFIG_DIR``).

Example ``work.yaml``:
    ```yaml
    name: work
    mode: dwd
    credentials_file: /secure/work-sa.json
    subject: admin@example.com
    threads: 8
    standard_delay: 200
    retry_on: [409]
    ```
"""

import logging
import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from gworkspace_admin.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "default"
DEFAULT_THREADS = 4
THREAD_CAP = 16
DEFAULT_DELAY_MS = 200

DEFAULT_SCOPES = [
    "https://www.googleapis.com/auth/admin.directory.customer.readonly",
    "https://www.googleapis.com/auth/admin.directory.user",
    "https://www.googleapis.com/auth/admin.directory.user.security",
    "https://www.googleapis.com/auth/admin.directory.group",
    "https://www.googleapis.com/auth/admin.directory.group.member",
    "https://www.googleapis.com/auth/admin.directory.orgunit",
    "https://www.googleapis.com/auth/admin.directory.rolemanagement",
    "https://www.googleapis.com/auth/admin.reports.audit.readonly",
    "https://www.googleapis.com/auth/apps.groups.settings",
    "https://www.googleapis.com/auth/apps.licensing",
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/cloud-identity.groups",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/drive.labels",
    "https://www.googleapis.com/auth/gmail.labels",
    "https://www.googleapis.com/auth/gmail.settings.basic",
    "https://www.googleapis.com/auth/gmail.settings.sharing",
]


class AdminConfig(BaseModel):
    """A named configuration.

    Attributes:
        name: Configuration name; also the file name without ``.yaml``.
        mode: ``dwd`` (service account with domain-wide delegation) or ``user``.
        credentials_file: Service account key (dwd) or OAuth client secrets (user).
        subject: User to impersonate in dwd mode.
        scopes: OAuth scopes to request.
        threads: Default number of batch workers.
        standard_delay: Milliseconds to wait after each call in batch mode.
        retry_on: Extra HTTP status codes to retry.
        log_file: Optional log file.
        default: Whether this configuration is used when ``--config`` is omitted.
    """

    name: str = Field(..., min_length=1)
    mode: Literal["dwd", "user"]
    credentials_file: str = Field(..., min_length=1)
    subject: str | None = None
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))
    threads: int = DEFAULT_THREADS
    standard_delay: int = Field(default=DEFAULT_DELAY_MS, ge=0)
    retry_on: list[int] = Field(default_factory=list)
    log_file: str | None = None
    default: bool = False

    @field_validator("threads")
    @classmethod
    def _clamp_threads(cls, value: int) -> int:
        if value <= 0:
            return DEFAULT_THREADS
        return min(value, THREAD_CAP)

    @model_validator(mode="after")
    def _check_mode(self) -> "AdminConfig":
        if self.mode == "user" and self.subject:
            raise ValueError("subject is not used with user mode")
        return self


def config_dir() -> Path:
    """Directory holding configurations."""
    env = os.environ.get("GWSADMIN_CONFIG_DIR")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".config" / "gworkspace-admin"


def find_config(name: str) -> Path:
    """Locate a configuration file.

    ``name`` may be a path to a YAML file or a configuration name.

    Raises:
        ConfigError: If no file is found.
    """
    direct = Path(name).expanduser()
    if direct.suffix in (".yaml", ".yml") and direct.is_file():
        return direct
    for directory in (Path.cwd(), config_dir()):
        candidate = directory / f"{name}.yaml"
        if candidate.is_file():
            return candidate
    raise ConfigError(
        f"configuration '{name}' not found in {Path.cwd()} or {config_dir()}. "
        "Create one with: gworkspace-admin configs new"
    )


def read_config(path: Path) -> AdminConfig:
    """Parse and validate a configuration file.

    Raises:
        ConfigError: If the file cannot be read or is invalid.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"cannot read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path} does not contain a mapping")
    data.setdefault("name", path.stem)
    try:
        return AdminConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration {path}: {e}") from e


def list_configs(directory: Path | None = None) -> list[tuple[Path, AdminConfig]]:
    """Read every configuration in the configuration directory.

    Unreadable files are logged and skipped.
    """
    directory = directory or config_dir()
    if not directory.is_dir():
        return []
    found = []
    for path in sorted(directory.glob("*.yaml")):
        try:
            found.append((path, read_config(path)))
        except ConfigError as e:
            logger.warning(str(e))
    return found


def load_config(name: str | None = None) -> tuple[Path, AdminConfig]:
    """Resolve the configuration for this invocation.

    Without a name, the configuration marked ``default: true`` is used, then
    ``default.yaml``.
    """
    if name:
        path = find_config(name)
        return path, read_config(path)
    for path, config in list_configs():
        if config.default:
            return path, config
    path = find_config(DEFAULT_CONFIG_NAME)
    return path, read_config(path)


def write_config(config: AdminConfig, path: Path) -> Path:
    """Write a configuration as YAML."""
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(exclude_none=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False)
    logger.debug(f"Wrote configuration {path}")
    return path


def create_config(values: dict[str, Any], directory: Path | None = None) -> Path:
    """Create a new configuration file.

    Raises:
        ConfigError: If the values are invalid, dwd mode lacks a subject or the
            name is taken.
    """
    try:
        config = AdminConfig.model_validate(values)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
    if config.mode == "dwd" and not config.subject:
        raise ConfigError("subject is required with dwd mode")
    path = (directory or config_dir()) / f"{config.name}.yaml"
    if path.exists():
        raise ConfigError(f"{path} already exists")
    return write_config(config, path)


def update_config(name: str, changes: dict[str, Any]) -> tuple[Path, AdminConfig]:
    """Apply changes to an existing configuration, renaming the file if needed.

    Raises:
        ConfigError: If the configuration does not exist or the result is invalid.
    """
    path = find_config(name)
    current = read_config(path)
    merged = current.model_dump()
    merged.update(changes)
    try:
        updated = AdminConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
    target = path.with_name(f"{updated.name}.yaml")
    if target != path and target.exists():
        raise ConfigError(f"{target} already exists")
    write_config(updated, target)
    if target != path:
        path.unlink()
    return target, updated


def token_path(config_path: Path, config: AdminConfig) -> Path:
    """Location of the stored user token for a configuration."""
    return config_path.parent / f"{config.name}_token.json"

"""
配置加载器：将 YAML 配置文件、~/.databrickscfg profile 和环境变量合并为 ExportConfig。
"""

import configparser
import logging
import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from sqlexport.errors import ConfigError

logger = logging.getLogger(__name__)


class ExportMode(str, Enum):
    DASHBOARD = "dashboard"
    QUERY = "query"


class ExportConfig(BaseModel):
    host: Optional[str] = None
    token: Optional[str] = None
    timeout: float = 30.0

    # Output
    output_dir: Path = Path(".")
    skip_table_defaults: bool = True

    @field_validator("host", mode="before")
    @classmethod
    def add_scheme(cls, value: Any) -> Any:
        """Workspace hosts are often copied without a scheme (adb-123.azuredatabricks.net)."""
        if isinstance(value, str) and value and "://" not in value:
            return f"https://{value}"
        return value

    @model_validator(mode="after")
    def check_workspace(self) -> "ExportConfig":
        if not self.host:
            raise ValueError("workspace host is not configured (set DATABRICKS_HOST or use a profile)")
        if not self.token:
            raise ValueError("access token is not configured (set DATABRICKS_TOKEN or use a profile)")
        return self


# ── Loading ───────────────────────────────────────────

_CONFIG_SEARCH_PATHS = [
    "config/sqlexport.yaml",
    "sqlexport.yaml",
]

_ENV_KEYS = {
    "host": "DATABRICKS_HOST",
    "token": "DATABRICKS_TOKEN",
}

_ENV_PLACEHOLDER = re.compile(r"\$\{(\w+)\}")


def resolve_env(value: Optional[str]) -> Optional[str]:
    """解析 ${ENV_VAR} 占位符为环境变量值。"""
    if value is None:
        return None

    def replacer(m: re.Match) -> str:
        env_val = os.getenv(m.group(1), "")
        if not env_val:
            raise ConfigError(f"环境变量 {m.group(1)} 未设置")
        return env_val

    return _ENV_PLACEHOLDER.sub(replacer, value)


def find_config_file() -> Optional[Path]:
    """Find the YAML config file, if any."""
    base = Path(os.getenv("SQLEXPORT_ROOT", "."))
    for p in _CONFIG_SEARCH_PATHS:
        path = base / p
        if path.is_file():
            return path
    return None


def profile_file(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    return Path(env.get("DATABRICKS_CONFIG_FILE") or "~/.databrickscfg").expanduser()


def load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as fp:
            content = yaml.safe_load(fp)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Error loading {path}: {e}") from e

    if not content:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return content


def load_profile(profile: str, path: Optional[Path] = None) -> Dict[str, str]:
    """Read host and token from a section of ~/.databrickscfg."""
    if path is None:
        path = profile_file()

    # Tokens may contain '%', so no interpolation
    parser = configparser.ConfigParser(interpolation=None)
    try:
        found = parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ConfigError(f"Error loading {path}: {e}") from e
    if not found:
        raise ConfigError(f"Profile file {path} not found")
    if profile != parser.default_section and not parser.has_section(profile):
        raise ConfigError(f"Profile {profile!r} not found in {path}")

    section = parser[profile]
    return {key: section[key] for key in ("host", "token") if section.get(key)}


def load_config(
    path: Optional[str | Path] = None,
    profile: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ExportConfig:
    """
    Build the run configuration.

    Precedence, lowest first: YAML file, the profile, DATABRICKS_* environment
    variables, keyword overrides (command-line flags).

    The profile is the one named by the caller, by ``profile:`` in the YAML
    file or by DATABRICKS_CONFIG_PROFILE. When none is named, the [DEFAULT]
    section of ~/.databrickscfg only fills in what the YAML file leaves unset.
    """
    if path is None:
        path = find_config_file()

    raw: Dict[str, Any] = {}
    if path is not None:
        raw.update(load_yaml(Path(path)))
        logger.debug(f"Loaded config from {path}")

    env = os.environ if env is None else env
    yaml_profile = raw.pop("profile", None)
    profile = profile or yaml_profile or env.get("DATABRICKS_CONFIG_PROFILE")
    cfg_file = profile_file(env)

    if profile:
        raw.update(load_profile(profile, cfg_file))
        logger.debug(f"Using profile {profile!r}")
    elif cfg_file.is_file():
        for key, value in load_profile(configparser.DEFAULTSECT, cfg_file).items():
            raw.setdefault(key, value)

    for key, var in _ENV_KEYS.items():
        if env.get(var):
            raw[key] = env[var]

    raw.update({k: v for k, v in overrides.items() if v is not None})
    for key in _ENV_KEYS:
        if isinstance(raw.get(key), str):
            raw[key] = resolve_env(raw[key])

    try:
        return ExportConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

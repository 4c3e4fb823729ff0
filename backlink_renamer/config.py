"""Configuration management for Backlink Renamer."""

import os
import json
import configparser
from pathlib import Path
from typing import Optional, Dict, Any, List, Union
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
import logging
from urllib.parse import urlparse

try:
    import yaml
    YAML_AVAILABLE = True
except ImportError:
    YAML_AVAILABLE = False

try:
    import tomli
    TOML_AVAILABLE = True
except ImportError:
    TOML_AVAILABLE = False


DEFAULT_PERMISSION_DENIED_PHRASE = "때문에 편집 권한이 부족합니다."
DEFAULT_LOG_TEMPLATE = "{old} -> {new} (backlink rename)"
DEFAULT_CONFIG_FILENAME = "config.ini"
USER_CONFIG_SUBDIR = Path(".config") / "backlink-renamer"


class WikiConfig(BaseModel):
    """Configuration for the wiki API connection."""

    domain: str = Field(..., description="Wiki domain, e.g. theseed.io")
    token: str = Field(..., description="Pre-acquired API bearer token")
    request_timeout: int = Field(default=30, description="Request timeout in seconds")

    @field_validator('domain')
    @classmethod
    def validate_domain(cls, v: str) -> str:
        """Validate the domain and normalise it to a base URL."""
        if not v or not v.strip():
            raise ValueError("domain cannot be empty")

        v = v.strip()
        if not v.startswith(('http://', 'https://')):
            v = f'https://{v}'

        parsed = urlparse(v)
        if not parsed.netloc:
            raise ValueError(f"Invalid wiki domain: {v}")

        return v.rstrip('/')

    @field_validator('token')
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("token cannot be empty")
        return v.strip()

    @field_validator('request_timeout')
    @classmethod
    def validate_request_timeout(cls, v: int) -> int:
        """Validate request_timeout is reasonable."""
        if v <= 0:
            raise ValueError("request_timeout must be positive")
        if v > 300:  # 5 minutes
            raise ValueError("request_timeout should not exceed 300 seconds")
        return v


class RenameSettings(BaseModel):
    """Settings shared by every rename run."""

    namespaces: List[str] = Field(..., description="Namespaces searched for backlinks")
    log_template: str = Field(default=DEFAULT_LOG_TEMPLATE, description="Edit summary with {old}/{new} placeholders")
    watch_document: Optional[str] = Field(None, description="Document polled for open discussions")
    edit_delay: float = Field(default=1.0, description="Pause after each submitted edit in seconds")
    poll_interval: float = Field(default=15.0, description="Discussion monitor polling interval in seconds")
    whitespace_tolerant: bool = Field(default=True, description="Allow spaces/tabs around link titles")
    detect_permission_denied: bool = Field(default=True, description="Report permission denials separately")
    permission_denied_phrase: str = Field(
        default=DEFAULT_PERMISSION_DENIED_PHRASE,
        description="Substring of the edit status message that signals a permission denial",
    )

    @field_validator('namespaces', mode='before')
    @classmethod
    def split_namespaces(cls, v: Any) -> List[str]:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            v = v.split(',')
        if not isinstance(v, (list, tuple)):
            raise ValueError("namespaces must be a list or comma-separated string")
        namespaces = [str(ns).strip() for ns in v if str(ns).strip()]
        if not namespaces:
            raise ValueError("at least one namespace is required")
        return namespaces

    @field_validator('watch_document', mode='before')
    @classmethod
    def blank_watch_document(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator('edit_delay', 'poll_interval')
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("delays cannot be negative")
        return v


class AppConfig(BaseModel):
    """Main application configuration."""

    wiki: WikiConfig
    rename: RenameSettings
    log_level: str = Field(default="INFO", description="Logging level")


def _parse_bool(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on', 'y')
    return value


def _load_ini(config_path: Path) -> Dict[str, Any]:
    parser = configparser.ConfigParser(interpolation=None)
    parser.read(config_path, encoding='utf-8')

    data: Dict[str, Any] = {}
    for section in ('wiki', 'rename'):
        if parser.has_section(section):
            data[section] = dict(parser.items(section))
    if parser.has_section('general'):
        data.update(dict(parser.items('general')))
    return data


def load_config_file(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load configuration from a file."""
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    logger = logging.getLogger(__name__)

    try:
        suffix = config_path.suffix.lower()
        if suffix == '.ini':
            return _load_ini(config_path)

        with open(config_path, 'r', encoding='utf-8') as f:
            if suffix in ['.yaml', '.yml']:
                if not YAML_AVAILABLE:
                    raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml")
                return yaml.safe_load(f) or {}

            elif suffix == '.toml':
                if not TOML_AVAILABLE:
                    raise ImportError("tomli is required for TOML config files. Install with: pip install tomli")
                return tomli.load(f.buffer)

            elif suffix == '.json':
                return json.load(f) or {}

            else:
                raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    except Exception as e:
        logger.error(f"Failed to load config file {config_path}: {e}")
        raise


def save_config_file(config_path: Union[str, Path], data: Dict[str, Any]) -> Path:
    """Persist configuration data, choosing the format from the file suffix."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = config_path.suffix.lower()

    if suffix == '.ini':
        parser = configparser.ConfigParser(interpolation=None)
        general = {k: v for k, v in data.items() if not isinstance(v, dict)}
        for section in ('wiki', 'rename'):
            values = data.get(section) or {}
            parser[section] = {
                k: ','.join(v) if isinstance(v, list) else str(v)
                for k, v in values.items() if v is not None
            }
        if general:
            parser['general'] = {k: str(v) for k, v in general.items() if v is not None}
        with open(config_path, 'w', encoding='utf-8') as f:
            parser.write(f)

    elif suffix == '.json':
        with open(config_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    elif suffix in ['.yaml', '.yml']:
        if not YAML_AVAILABLE:
            raise ImportError("PyYAML is required for YAML config files. Install with: pip install pyyaml")
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, allow_unicode=True, sort_keys=False)

    else:
        raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    logging.getLogger(__name__).info(f"Saved configuration to: {config_path}")
    return config_path


def find_config_file() -> Optional[Path]:
    """Return the first-run config in the working directory, else the per-user one."""
    user_config = Path.home() / USER_CONFIG_SUBDIR / DEFAULT_CONFIG_FILENAME
    for config_path in (Path.cwd() / DEFAULT_CONFIG_FILENAME, user_config):
        if config_path.exists():
            return config_path
    return None


def merge_config(base_config: Dict[str, Any], override_config: Dict[str, Any]) -> Dict[str, Any]:
    """Merge configuration dictionaries with override taking precedence."""
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value

    return merged


def load_config(config_file: Optional[Union[str, Path]] = None) -> AppConfig:
    """Load configuration from multiple sources with priority order.

    Priority (highest to lowest):
    1. Environment variables
    2. Specified config file (if provided)
    3. Auto-discovered config file
    4. Default values
    """
    logger = logging.getLogger(__name__)

    config_data: Dict[str, Any] = {}

    if config_file:
        config_path = Path(config_file)
        if config_path.exists():
            config_data = load_config_file(config_path)
            logger.info(f"Loaded configuration from: {config_path}")
        else:
            raise FileNotFoundError(f"Specified config file not found: {config_path}")
    else:
        config_path = find_config_file()
        if config_path:
            config_data = load_config_file(config_path)
            logger.info(f"Auto-discovered configuration file: {config_path}")

    load_dotenv()

    env_config = {
        "wiki": {
            "domain": os.getenv("WIKI_DOMAIN"),
            "token": os.getenv("WIKI_TOKEN"),
            "request_timeout": os.getenv("REQUEST_TIMEOUT"),
        },
        "rename": {
            "namespaces": os.getenv("WIKI_NAMESPACES"),
            "log_template": os.getenv("WIKI_LOG_TEMPLATE"),
            "watch_document": os.getenv("WIKI_WATCH_DOCUMENT"),
            "edit_delay": os.getenv("EDIT_DELAY"),
            "poll_interval": os.getenv("POLL_INTERVAL"),
        },
        "log_level": os.getenv("LOG_LEVEL"),
    }

    def remove_none_values(d):
        if isinstance(d, dict):
            return {k: remove_none_values(v) for k, v in d.items() if v is not None}
        return d

    env_config = remove_none_values(env_config)
    final_config = merge_config(config_data, env_config)

    wiki_data = final_config.get("wiki", {})
    wiki_config = WikiConfig(
        domain=wiki_data.get("domain", ""),
        token=wiki_data.get("token", ""),
        request_timeout=int(wiki_data.get("request_timeout", 30)),
    )

    rename_data = final_config.get("rename", {})
    rename_settings = RenameSettings(
        namespaces=rename_data.get("namespaces", []),
        log_template=rename_data.get("log_template", DEFAULT_LOG_TEMPLATE),
        watch_document=rename_data.get("watch_document"),
        edit_delay=float(rename_data.get("edit_delay", 1.0)),
        poll_interval=float(rename_data.get("poll_interval", 15.0)),
        whitespace_tolerant=_parse_bool(rename_data.get("whitespace_tolerant", True)),
        detect_permission_denied=_parse_bool(rename_data.get("detect_permission_denied", True)),
        permission_denied_phrase=rename_data.get("permission_denied_phrase", DEFAULT_PERMISSION_DENIED_PHRASE),
    )

    return AppConfig(
        wiki=wiki_config,
        rename=rename_settings,
        log_level=final_config.get("log_level", "INFO"),
    )

"""
Configuration management for doc_fetcher.

YAML configuration loaded in layers, with later layers overriding earlier ones:

1. Package defaults (``doc_fetcher/config.yaml``)
2. User config (``~/.config/doc_fetcher/config.yaml``)
3. Explicit config path, or ``./config.yaml`` if present

The merged dictionary is turned into an immutable FetcherConfig so that one
configuration value can be shared by many independent conversions.
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

PACKAGE_CONFIG_PATH = Path(__file__).parent / "config.yaml"
USER_CONFIG_PATH = Path.home() / ".config" / "doc_fetcher" / "config.yaml"


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary (defaults)
        override: Override dictionary (will overwrite base values)

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _read_yaml(path: Path) -> Dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict:
    """
    Load configuration from YAML files with defaults and overrides.

    Args:
        config_path: Path to config file (optional). If provided, used as final override.
                    If not provided, checks for ./config.yaml as final override.

    Returns:
        Dictionary with merged config values
    """
    config: Dict[str, Any] = {}

    if PACKAGE_CONFIG_PATH.exists():
        try:
            config = _deep_merge(config, _read_yaml(PACKAGE_CONFIG_PATH))
            logger.debug(f"Loaded package defaults from {PACKAGE_CONFIG_PATH}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load package default config from {PACKAGE_CONFIG_PATH}: {e}")

    if USER_CONFIG_PATH.exists():
        try:
            config = _deep_merge(config, _read_yaml(USER_CONFIG_PATH))
            logger.debug(f"Loaded user config from {USER_CONFIG_PATH}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load user config from {USER_CONFIG_PATH}: {e}")

    override_path = None
    if config_path:
        override_path = Path(config_path).expanduser()
    else:
        local_path = Path("./config.yaml").resolve()
        if local_path.exists():
            override_path = local_path

    if override_path and override_path.exists():
        try:
            config = _deep_merge(config, _read_yaml(override_path))
            logger.info(f"Loaded override config from {override_path.resolve()}")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load override config from {override_path}: {e}")
    elif config_path:
        logger.warning(f"Override config file {config_path} not found, using defaults only")

    return config


@dataclass(frozen=True)
class HeadlessSettings:
    """Headless Chrome rendering options."""
    enabled: bool = True
    page_load_timeout: int = 30
    settle_delay: float = 2.0
    margin_cm: float = 0.5


@dataclass(frozen=True)
class ArxivSettings:
    """arXiv endpoints."""
    pdf_base: str = "https://arxiv.org/pdf"
    abs_base: str = "https://arxiv.org/abs"
    api_url: str = "https://export.arxiv.org/api/query"


@dataclass(frozen=True)
class RemoteRenderSettings:
    """Remote render services. A service without credentials is skipped."""
    browserless_url: str = "https://chrome.browserless.io/pdf"
    browserless_token: Optional[str] = None
    pdfshift_url: str = "https://api.pdfshift.io/v3/convert/pdf"
    pdfshift_api_key: Optional[str] = None


@dataclass(frozen=True)
class FetcherConfig:
    """Configuration for the conversion pipeline."""

    output_dir: Path = Path("./downloads")

    # Network
    timeout: int = 30
    download_timeout: int = 60
    max_retries: int = 3
    backoff_factor: float = 1.0
    user_agent: str = DEFAULT_USER_AGENT

    # Batch processing
    batch_pacing: float = 1.0
    selection_threshold: int = 3

    # Content extraction
    content_extraction: bool = True
    min_content_length: int = 100

    headless: HeadlessSettings = field(default_factory=HeadlessSettings)
    arxiv: ArxivSettings = field(default_factory=ArxivSettings)
    remote_render: RemoteRenderSettings = field(default_factory=RemoteRenderSettings)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetcherConfig":
        """Create config from a (merged) dictionary. Unknown keys are ignored."""
        data = dict(data or {})
        headless = data.pop("headless", None) or {}
        arxiv = data.pop("arxiv", None) or {}
        remote = dict(data.pop("remote_render", None) or {})

        # Credentials may come from the environment instead of a file
        remote.setdefault("browserless_token", None)
        remote.setdefault("pdfshift_api_key", None)
        if not remote["browserless_token"]:
            remote["browserless_token"] = os.environ.get("BROWSERLESS_TOKEN")
        if not remote["pdfshift_api_key"]:
            remote["pdfshift_api_key"] = os.environ.get("PDFSHIFT_API_KEY")

        known = {f for f in cls.__dataclass_fields__ if f not in ("headless", "arxiv", "remote_render")}
        kwargs = {key: value for key, value in data.items() if key in known and value is not None}
        if "output_dir" in kwargs:
            kwargs["output_dir"] = Path(kwargs["output_dir"]).expanduser()

        return cls(
            headless=HeadlessSettings(**_known_fields(HeadlessSettings, headless)),
            arxiv=ArxivSettings(**_known_fields(ArxivSettings, arxiv)),
            remote_render=RemoteRenderSettings(**_known_fields(RemoteRenderSettings, remote)),
            **kwargs,
        )

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None, **overrides) -> "FetcherConfig":
        """
        Load layered YAML config and apply keyword overrides.

        Priority: overrides > config files > defaults. ``None`` overrides are ignored.
        """
        config = cls.from_dict(load_config(config_path))
        return config.with_overrides(**overrides)

    def with_overrides(self, **overrides) -> "FetcherConfig":
        """Return a copy with the given (non-None) top-level fields replaced."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        if "output_dir" in changes:
            changes["output_dir"] = Path(changes["output_dir"]).expanduser()
        return replace(self, **changes) if changes else self


def _known_fields(klass, data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if key in klass.__dataclass_fields__ and value is not None}

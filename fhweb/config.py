"""
fhw-web Configuration Loader

Loads configuration from:
1. fhw.yaml (or an explicit path) - project settings
2. .env file next to it - deployment overrides (FHW_PORT, FHW_HOST)

User settings are merged over DEFAULT_CONFIG: nested sections are merged
key by key, unknown keys are ignored.
"""

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG: dict[str, Any] = {
    "port": 8080,
    "host": "0.0.0.0",
    "validator": {
        "html": False,
        "css": False,
        "html_endpoint": "https://validator.w3.org/nu/?out=json",
        "css_endpoint": "https://jigsaw.w3.org/css-validator/validator",
        "timeout": 30.0,
    },
    "paths": {
        "root": ".",
        "pages": "pages",
        "static": ".",
        "controllers": "controller",
        "data": "data",
        "routes": "routes.yaml",
        "global_frontmatter": "global.yaml",
    },
    "session": {
        "cookie": "fhw_session",
        "db": "data/sessions.db",
        "max_age_days": 30,
    },
}


def combine_configuration(
    user_config: dict | None = None,
    defaults: dict | None = None,
) -> dict:
    """Merge ``user_config`` over ``defaults``.

    Only keys present in ``defaults`` survive. Nested dicts are merged
    recursively at every depth; a user value of ``None`` counts as missing.
    """
    if defaults is None:
        defaults = DEFAULT_CONFIG
    user_config = user_config or {}

    combined = {}
    for key, default in defaults.items():
        user_value = user_config.get(key)
        if isinstance(default, dict):
            combined[key] = (
                combine_configuration(user_value, default)
                if isinstance(user_value, dict)
                else copy.deepcopy(default)
            )
        else:
            combined[key] = user_value if user_value is not None else default
    return combined


@dataclass
class ValidatorConfig:
    html: bool = False
    css: bool = False
    html_endpoint: str = DEFAULT_CONFIG["validator"]["html_endpoint"]
    css_endpoint: str = DEFAULT_CONFIG["validator"]["css_endpoint"]
    timeout: float = 30.0


@dataclass
class PathsConfig:
    root: str = "."
    pages: str = "pages"
    static: str = "."
    controllers: str = "controller"
    data: str = "data"
    routes: str = "routes.yaml"
    global_frontmatter: str = "global.yaml"


@dataclass
class SessionConfig:
    cookie: str = "fhw_session"
    db: str = "data/sessions.db"
    max_age_days: int = 30


@dataclass
class Config:
    """Main configuration container."""
    port: int = 8080
    host: str = "0.0.0.0"
    validator: ValidatorConfig = field(default_factory=ValidatorConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    session: SessionConfig = field(default_factory=SessionConfig)

    @classmethod
    def from_dict(cls, user_config: dict | None = None) -> "Config":
        """Build a Config from user settings merged over the defaults."""
        merged = combine_configuration(user_config)
        return cls(
            port=int(merged["port"]),
            host=merged["host"],
            validator=ValidatorConfig(**merged["validator"]),
            paths=PathsConfig(**merged["paths"]),
            session=SessionConfig(**merged["session"]),
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from a yaml file and environment variables.

        Resolution order:
        1. Explicit config_path argument
        2. Default: ./fhw.yaml
        Relative ``paths.root`` values are resolved against the config
        file's directory.
        """
        if config_path is None:
            config_path = Path.cwd() / "fhw.yaml"
        load_dotenv(config_path.parent / ".env", override=False)

        yaml_config = {}
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f) or {}

        # Env vars override yaml for deployment-specific settings
        if os.getenv("FHW_PORT"):
            yaml_config["port"] = int(os.environ["FHW_PORT"])
        if os.getenv("FHW_HOST"):
            yaml_config["host"] = os.environ["FHW_HOST"]

        config = cls.from_dict(yaml_config)
        root = Path(config.paths.root)
        if not root.is_absolute():
            config.paths.root = str((config_path.parent / root).resolve())
        return config

    @property
    def root(self) -> Path:
        return Path(self.paths.root).resolve()

    def resolve(self, relative: str | Path) -> Path:
        """Absolute path of ``relative`` under the project root."""
        return (self.root / relative).resolve()


_active_config: Config | None = None


def use_config(config: Config | None) -> None:
    """Make ``config`` the configuration of the running server."""
    global _active_config
    _active_config = config


def active_config() -> Config:
    """Configuration of the running server; defaults before startup."""
    return _active_config or Config.from_dict()

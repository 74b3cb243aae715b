"""
Configuration management for Craft Reporter.
"""

import os
from pathlib import Path
from typing import Optional, Dict, Any, List
from dataclasses import dataclass, fields

from craft_reporter.core.errors import ConfigurationError

CONFIG_ENV_VAR = "CRAFT_REPORTER_CONFIG"
CONFIG_FILE_NAME = "craft_reporter.toml"
CONFIG_TABLE = "craft_reporter"

DATA_FILE_NAME = "report-data.json"
COMMENTS_FILE_NAME = "comments.json"

PACKAGED_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "html"


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        import tomllib  # Python 3.11+
    except ModuleNotFoundError:  # Python 3.8-3.10
        import tomli as tomllib

    return tomllib.loads(path.read_text(encoding="utf-8"))


def find_config_file(root_dir: Path, config_file: Optional[Path] = None) -> Optional[Path]:
    """Locate the config file: explicit path, env var, craft_reporter.toml, then pyproject.toml."""
    if config_file is not None:
        return Path(config_file).resolve()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).resolve()
    dedicated = root_dir / CONFIG_FILE_NAME
    if dedicated.exists():
        return dedicated
    pyproject = root_dir / "pyproject.toml"
    if pyproject.exists():
        return pyproject
    return None


def read_config_table(config_file: Path) -> Dict[str, Any]:
    """Read the craft_reporter table from a TOML file (empty if absent)."""
    if not config_file.exists():
        return {}
    try:
        data = _read_toml(config_file)
    except Exception as e:
        raise ConfigurationError(f"Failed to read config file: {config_file}: {e}") from e

    table = data.get(CONFIG_TABLE) or data.get("tool", {}).get(CONFIG_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigurationError(
            f"[{CONFIG_TABLE}] in {config_file} must be a table, got {type(table).__name__}"
        )
    return table


@dataclass
class ReporterConfig:
    """Configuration class for Craft Reporter."""

    # Paths - resolved in __post_init__
    root_dir: Optional[Path] = None
    config_file: Optional[Path] = None

    # Reporter options
    enabled: bool = False
    output_dir: Path = Path("craft-report")
    output_file: str = "report.html"
    open: bool = False
    title: str = "Craft Test Report"
    logo: str = ""
    template_dir: Optional[Path] = None
    log_file: Optional[Path] = None

    verbosity: int = 0  # 0=minimal, 1=progress, 2=details, 3=debug

    def __post_init__(self):
        """Resolve paths against the root directory and validate options."""
        if self.root_dir is None:
            self.root_dir = Path.cwd()
        self.root_dir = Path(self.root_dir).resolve()

        self.output_dir = (self.root_dir / Path(self.output_dir)).resolve()
        if self.template_dir is not None:
            self.template_dir = (self.root_dir / Path(self.template_dir)).resolve()
        if self.log_file is not None:
            self.log_file = (self.root_dir / Path(self.log_file)).resolve()

        for flag in ("enabled", "open"):
            value = getattr(self, flag)
            if not isinstance(value, bool):
                raise ConfigurationError(f"{flag} must be true or false, got {value!r}")

        if not self.output_file or Path(self.output_file).name != self.output_file:
            raise ConfigurationError(f"output_file must be a plain file name, got {self.output_file!r}")
        if not isinstance(self.title, str):
            raise ConfigurationError(f"title must be a string, got {type(self.title).__name__}")
        if not isinstance(self.logo, str):
            raise ConfigurationError(f"logo must be a path string, got {type(self.logo).__name__}")

        if isinstance(self.verbosity, bool) or not isinstance(self.verbosity, int):
            raise ConfigurationError(f"verbosity must be an integer, got {self.verbosity!r}")
        if not 0 <= self.verbosity <= 3:
            raise ValueError(f"verbosity must be between 0 and 3, got {self.verbosity}")

    @classmethod
    def load(
        cls,
        root_dir: Optional[Path] = None,
        config_file: Optional[Path] = None,
        **overrides: Any,
    ) -> "ReporterConfig":
        """
        Build a configuration from the config file plus explicit overrides.

        Overrides that are None are ignored, so callers can pass unset
        command line options straight through.
        """
        root = Path(root_dir).resolve() if root_dir else Path.cwd()
        resolved_file = find_config_file(root, config_file)

        values: Dict[str, Any] = {}
        if resolved_file is not None:
            values.update(read_config_table(resolved_file))
        for key, value in overrides.items():
            if value is not None:
                values[key] = value

        known = {f.name for f in fields(cls)} - {"root_dir", "config_file"}
        init_kwargs = {key: value for key, value in values.items() if key in known}
        return cls(root_dir=root, config_file=resolved_file, **init_kwargs)

    @property
    def report_path(self) -> Path:
        return self.output_dir / self.output_file

    @property
    def data_path(self) -> Path:
        return self.output_dir / DATA_FILE_NAME

    @property
    def comments_path(self) -> Path:
        return self.output_dir / COMMENTS_FILE_NAME

    @property
    def logo_path(self) -> Optional[Path]:
        """Logo location relative to the working directory, or None if unset."""
        if not self.logo:
            return None
        return (self.root_dir / self.logo).resolve()

    def template_candidates(self) -> List[Path]:
        """Directories searched for template.html, most specific first."""
        candidates = []
        if self.template_dir is not None:
            candidates.append(self.template_dir)
        candidates.append(PACKAGED_TEMPLATE_DIR)
        return candidates

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "root_dir": str(self.root_dir),
            "config_file": str(self.config_file) if self.config_file else None,
            "enabled": self.enabled,
            "output_dir": str(self.output_dir),
            "output_file": self.output_file,
            "open": self.open,
            "title": self.title,
            "logo": self.logo,
            "template_dir": str(self.template_dir) if self.template_dir else None,
            "log_file": str(self.log_file) if self.log_file else None,
            "verbosity": self.verbosity,
        }


"""
JSON-based project configuration for stl_analysis.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (config.py)
2. The first `.stl-analysis.json` found by `find_config_file`
3. CLI arguments

Example .stl-analysis.json:
{
    "welding": {
        "tolerance_divisor": 65536.0,
        "neighborhood": 2,
        "degeneracy": "coincident"
    },
    "analysis": {
        "body_count_policy": "best_effort",
        "max_workers": 4
    },
    "logging": {
        "level": "DEBUG",
        "json_file": "analysis.log.json"
    }
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from stl_analysis import config as cfg

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".stl-analysis.json"


class ConfigError(ValueError):
    """Configuration value outside its allowed set."""


def _is_number(value: Any) -> bool:
    # JSON true/false arrive as bool, which is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class WeldingConfig:
    """Mesh reconstruction settings."""
    tolerance_divisor: float = cfg.TOLERANCE_DIVISOR
    neighborhood: int = cfg.DEFAULT_NEIGHBORHOOD  # 2 = legacy 2x2x2 probe, 3 = 3x3x3
    degeneracy: str = cfg.DEFAULT_DEGENERACY  # "coincident" or "collinear"


@dataclass
class AnalysisConfig:
    """Background computation settings."""
    body_count_policy: str = cfg.DEFAULT_BODY_COUNT_POLICY  # "best_effort" or "await"
    max_workers: Optional[int] = cfg.DEFAULT_MAX_WORKERS


@dataclass
class LoggingConfig:
    """Logging output settings (applied by the command line only)."""
    level: str = "INFO"
    json_file: Optional[str] = None
    use_colors: bool = True


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    welding: WeldingConfig = field(default_factory=WeldingConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> 'ProjectConfig':
        """Check the type and allowed range of every value.

        Returns:
            self, for chaining

        Raises:
            ConfigError: on the first invalid value
        """
        neighborhood = self.welding.neighborhood
        if not _is_int(neighborhood) or neighborhood not in cfg.NEIGHBORHOODS:
            raise ConfigError(
                f"welding.neighborhood must be one of {cfg.NEIGHBORHOODS}, "
                f"got {self.welding.neighborhood!r}"
            )
        if self.welding.degeneracy not in cfg.DEGENERACY_MODES:
            raise ConfigError(
                f"welding.degeneracy must be one of {cfg.DEGENERACY_MODES}, "
                f"got {self.welding.degeneracy!r}"
            )
        divisor = self.welding.tolerance_divisor
        if not _is_number(divisor) or not divisor > 0:
            raise ConfigError(
                f"welding.tolerance_divisor must be a positive number, "
                f"got {self.welding.tolerance_divisor!r}"
            )
        if self.analysis.body_count_policy not in cfg.BODY_COUNT_POLICIES:
            raise ConfigError(
                f"analysis.body_count_policy must be one of {cfg.BODY_COUNT_POLICIES}, "
                f"got {self.analysis.body_count_policy!r}"
            )
        max_workers = self.analysis.max_workers
        if max_workers is not None and (not _is_int(max_workers) or max_workers < 1):
            raise ConfigError(
                f"analysis.max_workers must be a positive integer, got {max_workers!r}"
            )
        if not isinstance(logging.getLevelName(str(self.logging.level).upper()), int):
            raise ConfigError(f"logging.level is not a logging level: {self.logging.level!r}")
        return self

    @property
    def log_level(self) -> int:
        return logging.getLevelName(str(self.logging.level).upper())

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from a dictionary.

        Unknown sections and keys are ignored. Values are not validated;
        call `validate()`.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a JSON object, got {type(data).__name__}")

        config = cls()
        for section in fields(cls):
            values = data.get(section.name)
            if not isinstance(values, dict):
                continue
            target = getattr(config, section.name)
            for key, value in values.items():
                if hasattr(target, key):
                    setattr(target, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        """Create configuration from a JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find a configuration file.

    Search order:
    1. Explicit config path (if provided and present)
    2. .stl-analysis.json in the STL file's directory
    3. .stl-analysis.json in the current working directory
    4. ~/.stl-analysis.json

    Returns:
        Path to the config file, or None
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        candidates.append(Path(stl_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration with fallback to defaults.

    An unreadable or malformed file is logged and replaced by defaults.
    Out-of-range values are not checked here; see `ProjectConfig.validate`.
    """
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, OSError, ConfigError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()

"""
Strategy Configuration

Loads and provides access to strategy weights from JSON configuration files.
This allows tuning bluffing, challenging and search behavior without code changes.

Usage:
    from coupbot.strategy_config import get_config

    # Get a value (with fallback default)
    margin = get_config().get('policy', 'bluff_ev_margin', default=0.10)

    # Get a whole section
    rollout = get_config().get_section('rollout')

Environment:
    COUP_STRATEGY_CONFIG - Path to JSON config file (default: configs/baseline.json)
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# Default config path (relative to this file)
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "configs" / "baseline.json"


class StrategyConfig:
    """
    Loads and provides access to strategy weights from JSON.

    Missing or broken files never raise: callers always pass a default,
    so an empty config reproduces the built-in behavior.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the strategy config.

        Args:
            config_path: Path to JSON config file. If not provided, uses
                        COUP_STRATEGY_CONFIG env var or default baseline.json.
        """
        if config_path:
            self.path = Path(config_path)
        else:
            env_path = os.environ.get('COUP_STRATEGY_CONFIG')
            if env_path:
                self.path = Path(env_path)
            else:
                self.path = DEFAULT_CONFIG_PATH

        self._config: Dict[str, Any] = {}
        self._loaded = False
        self._load()

    def _load(self):
        """Load configuration from JSON file."""
        try:
            if self.path.exists():
                with open(self.path, 'r', encoding='utf-8') as f:
                    self._config = json.load(f)
                self._loaded = True
                logger.info(f"Loaded strategy config from: {self.path}")
                logger.info(f"  Config name: {self._config.get('name', 'unknown')}")
                logger.info(f"  Config version: {self._config.get('version', 'unknown')}")
                self._log_key_values()
            else:
                logger.warning(f"Strategy config not found: {self.path}, using defaults")
                self._config = {}
                self._loaded = False
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in strategy config {self.path}: {e}")
            self._config = {}
            self._loaded = False
        except OSError as e:
            logger.error(f"Error reading strategy config {self.path}: {e}")
            self._config = {}
            self._loaded = False

    def _log_key_values(self):
        """Log key config values for verification."""
        pr = self._config.get('probability', {})
        logger.info(f"  [probability] credibility_weight={pr.get('credibility_weight')}")

        po = self._config.get('policy', {})
        logger.info(f"  [policy] bluff_ev_margin={po.get('bluff_ev_margin')}, "
                    f"coup_threshold={po.get('coup_threshold')}")

        ro = self._config.get('rollout', {})
        logger.info(f"  [rollout] search_iterations={ro.get('search_iterations')}, "
                    f"rollouts_per_action={ro.get('rollouts_per_action')}, "
                    f"depth={ro.get('depth')}, model_eliminations={ro.get('model_eliminations')}")

    def reload(self):
        """Reload configuration from file."""
        self._load()

    @property
    def name(self) -> str:
        """Get config name."""
        return self._config.get('name', 'default')

    @property
    def version(self) -> str:
        """Get config version."""
        return self._config.get('version', '0.0.0')

    @property
    def is_loaded(self) -> bool:
        """Check if config was successfully loaded."""
        return self._loaded

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            section: Config section (e.g., 'probability', 'policy', 'rollout')
            key: Key within section (e.g., 'bluff_ev_margin')
            default: Default value if not found

        Returns:
            The config value or default
        """
        section_data = self._config.get(section, {})
        return section_data.get(key, default)

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get an entire config section as a dict (empty if not found)."""
        return self._config.get(section, {})

    def as_dict(self) -> Dict[str, Any]:
        """Get the full config as a dictionary."""
        return self._config.copy()


# Global singleton instance
_config: Optional[StrategyConfig] = None


def get_config() -> StrategyConfig:
    """
    Get the global strategy config singleton.

    Returns:
        The StrategyConfig instance
    """
    global _config
    if _config is None:
        _config = StrategyConfig()
    return _config


def set_config_path(path: str):
    """
    Set the config path and reload.

    Used for testing or switching between configs at runtime.

    Args:
        path: Path to JSON config file
    """
    global _config
    _config = StrategyConfig(path)


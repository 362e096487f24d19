"""
Configuration Loader Service

Loads synchronizer configuration from workspace_sync.json in the project root.
Environment variables always take precedence over config file values.

Config file location (in order of precedence):
1. WORKSPACE_SYNC_ROOT/workspace_sync.json (if WORKSPACE_SYNC_ROOT is set)
2. CWD/workspace_sync.json

Supported settings in workspace_sync.json:
{
    "workspace_root": "/path/to/project",   // -> WORKSPACE_SYNC_ROOT
    "index_files": ["Main.groovy"],          // -> WORKSPACE_SYNC_INDEX_FILES
    "classpath": ["lib/*", "extra.jar"],     // -> WORKSPACE_SYNC_CLASSPATH
    "source_extension": ".groovy",           // -> WORKSPACE_SYNC_EXTENSION
    "watch": false,                          // -> WORKSPACE_SYNC_WATCH
    "log_dir": ".workspace_sync",            // -> WORKSPACE_SYNC_LOG_DIR
    "debug_log": true                        // -> WORKSPACE_SYNC_DEBUG_LOG
}
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..logging_config import configure_logger_for_debug_trace, ensure_debug_trace_configured
from .directory_reconciler import DEFAULT_SOURCE_EXTENSION
from .index_filter import IndexFilter

logger = configure_logger_for_debug_trace(__name__)

CONFIG_FILE_NAME = "workspace_sync.json"


@dataclass
class SyncConfig:
    """
    Effective synchronizer configuration.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    workspace_root: Optional[Path] = None
    index_filter: IndexFilter = field(default_factory=IndexFilter)
    classpath: List[str] = field(default_factory=list)
    source_extension: str = DEFAULT_SOURCE_EXTENSION
    watch: bool = False


class ConfigLoader:
    """
    Loads configuration from workspace_sync.json file.

    ::: This is-in-layer Service-Layer.
    ::: This is a loader.
    ::: This is stateless.

    Priority: Environment variables > workspace_sync.json > defaults
    """

    # Mapping from workspace_sync.json keys to environment variable names
    CONFIG_KEY_TO_ENV = {
        "workspace_root": "WORKSPACE_SYNC_ROOT",
        "index_files": "WORKSPACE_SYNC_INDEX_FILES",
        "classpath": "WORKSPACE_SYNC_CLASSPATH",
        "source_extension": "WORKSPACE_SYNC_EXTENSION",
        "watch": "WORKSPACE_SYNC_WATCH",
        "log_dir": "WORKSPACE_SYNC_LOG_DIR",
        "debug_log": "WORKSPACE_SYNC_DEBUG_LOG",
    }

    # Passed through as-is; environment strings cannot represent a
    # malformed filter faithfully
    RAW_KEYS = {"index_files"}

    # Relative paths are resolved against the directory holding the config file
    PATH_KEYS = {"workspace_root", "log_dir"}

    def __init__(self):
        self._config: Dict[str, Any] = {}
        self._config_path: Optional[Path] = None
        self._loaded = False

    def load(self, project_root: Optional[Path] = None) -> bool:
        """
        Load configuration from workspace_sync.json.

        Args:
            project_root: Directory holding the config file. If None, uses
                WORKSPACE_SYNC_ROOT or CWD.

        Returns:
            True if a config file was found and loaded, False otherwise.
        """
        if self._loaded:
            return self._config_path is not None

        if project_root is None:
            env_root = os.getenv("WORKSPACE_SYNC_ROOT")
            project_root = Path(env_root) if env_root else Path.cwd()

        config_path = project_root / CONFIG_FILE_NAME
        if config_path.exists():
            try:
                with open(config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                logger.warning(f"Invalid JSON in {config_path}: {e}")
            except OSError as e:
                logger.warning(f"Error loading {config_path}: {e}")
            else:
                if isinstance(data, dict):
                    self._config = data
                    self._config_path = config_path
                    logger.info(f"Loaded config from: {config_path}")
                    self._apply_config(config_path.parent)
                else:
                    logger.warning(f"Ignoring {config_path}: top level is not an object")

        self._loaded = True
        return self._config_path is not None

    def _apply_config(self, config_dir: Path) -> None:
        """
        Apply config values as environment variables (only if not already set).
        This allows env vars to override config file values.
        """
        for config_key, env_var in self.CONFIG_KEY_TO_ENV.items():
            if config_key not in self._config or config_key in self.RAW_KEYS:
                continue
            if os.getenv(env_var) is not None:
                continue
            value = self._config[config_key]
            if isinstance(value, bool):
                if config_key == "debug_log":
                    # An empty string disables the debug file log
                    value = "true" if value else ""
                else:
                    value = "true" if value else "false"
            elif isinstance(value, (int, float)):
                value = str(value)
            elif isinstance(value, list):
                value = os.pathsep.join(str(v) for v in value)
            elif not isinstance(value, str):
                logger.warning(f"Ignoring {config_key}: unsupported value {value!r}")
                continue
            if config_key in self.PATH_KEYS and value:
                path = Path(value).expanduser()
                value = str(path if path.is_absolute() else (config_dir / path).absolute())
            os.environ[env_var] = value
            logger.debug(f"   {env_var}={value} (from {CONFIG_FILE_NAME})")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value."""
        return self._config.get(key, default)

    def get_sync_config(self) -> SyncConfig:
        """
        Build the effective synchronizer configuration.

        Returns:
            SyncConfig with environment overrides and defaults applied.
        """
        root_value = os.getenv("WORKSPACE_SYNC_ROOT")
        workspace_root = Path(root_value).expanduser().absolute() if root_value else None

        filter_value = os.getenv("WORKSPACE_SYNC_INDEX_FILES")
        if filter_value is None:
            filter_value = self._config.get("index_files")
        index_filter = IndexFilter.from_value(filter_value)

        classpath_value = os.getenv("WORKSPACE_SYNC_CLASSPATH", "")
        classpath = [entry for entry in classpath_value.split(os.pathsep) if entry]

        extension = os.getenv("WORKSPACE_SYNC_EXTENSION") or DEFAULT_SOURCE_EXTENSION
        if not extension.startswith("."):
            extension = "." + extension

        watch = os.getenv("WORKSPACE_SYNC_WATCH", "false").lower() in ('true', '1', 'yes')

        return SyncConfig(
            workspace_root=workspace_root,
            index_filter=index_filter,
            classpath=classpath,
            source_extension=extension,
            watch=watch,
        )

    @property
    def config_path(self) -> Optional[Path]:
        """Path to the loaded config file, or None if not loaded."""
        return self._config_path

    @property
    def config(self) -> Dict[str, Any]:
        """The loaded configuration dictionary."""
        return self._config.copy()


# Global singleton instance
_config_loader: Optional[ConfigLoader] = None


def get_config_loader() -> ConfigLoader:
    """Get the global config loader instance."""
    global _config_loader
    if _config_loader is None:
        _config_loader = ConfigLoader()
    return _config_loader


def load_config(project_root: Optional[Path] = None) -> bool:
    """
    Load configuration from workspace_sync.json.

    This should be called early in startup, before other services read
    environment variables. The debug trace log is re-pointed at the
    configured log directory afterwards.
    """
    loaded = get_config_loader().load(project_root)
    ensure_debug_trace_configured(project_root)
    return loaded


def get_sync_config() -> SyncConfig:
    """Load the config file (once) and return the effective configuration."""
    loader = get_config_loader()
    loader.load()
    return loader.get_sync_config()

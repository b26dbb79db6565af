"""
Configuration management for the planning engine
Handles loading and saving settings and planning capacity limits
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional


class Config:
    """Configuration manager for the planning engine"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration manager

        Args:
            config_dir: Path to configuration directory (defaults to ./config)
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.settings_file = self.config_dir / "settings.json"
        self.planning_file = self.config_dir / "planning.json"

        # Load configurations
        self.settings = self._load_json(self.settings_file, self._default_settings())
        self.planning = self._load_json(self.planning_file, self._default_planning())

    def _load_json(self, file_path: Path, default: Dict[str, Any]) -> Dict[str, Any]:
        """Load JSON file or return default if file doesn't exist"""
        if file_path.exists():
            with open(file_path, 'r') as f:
                loaded = json.load(f)
            # Keys added since the file was written fall back to defaults
            return {**default, **loaded}
        else:
            # Create file with defaults
            self._save_json(file_path, default)
            return default

    def _save_json(self, file_path: Path, data: Dict[str, Any]) -> None:
        """Save data to JSON file"""
        with open(file_path, 'w') as f:
            json.dump(data, f, indent=2)

    def _default_settings(self) -> Dict[str, Any]:
        """Default system settings"""
        return {
            "database_path": "data/database/planner.db",
            "history_database_path": "data/database/timedb.db",
        }

    def _default_planning(self) -> Dict[str, Any]:
        """Default capacity limits for planning sessions"""
        return {
            "daily_capacity": 8.0,
            "focus_capacity": 6.0,
            "max_tasks": 8,
            "max_focus_hours": 6.0,
            "buffer_time": 0.25,
            "quick_max_tasks": 3,
            "quick_max_focus_hours": 4.0,
            "history_limit": 30,
        }

    def get(self, key: str, section: str = "settings", default: Any = None) -> Any:
        """
        Get configuration value

        Args:
            key: Configuration key
            section: Configuration section ('settings', 'planning')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        section_map = {
            "settings": self.settings,
            "planning": self.planning,
        }

        return section_map.get(section, {}).get(key, default)

    def set(self, key: str, value: Any, section: str = "settings") -> None:
        """
        Set configuration value and save to disk

        Args:
            key: Configuration key
            value: Value to set
            section: Configuration section ('settings', 'planning')
        """
        section_map = {
            "settings": (self.settings, self.settings_file),
            "planning": (self.planning, self.planning_file),
        }

        if section in section_map:
            config_dict, file_path = section_map[section]
            config_dict[key] = value
            self._save_json(file_path, config_dict)

    def _resolve_path(self, env_var: str, setting: str) -> Path:
        override = os.environ.get(env_var)
        if override:
            return Path(override)
        path = Path(self.settings[setting])
        if path.is_absolute():
            return path
        base_path = Path(__file__).parent.parent.parent
        return base_path / path

    def get_database_path(self) -> Path:
        """Get full path to the task database file"""
        return self._resolve_path("PLANNER_DB_PATH", "database_path")

    def get_history_database_path(self) -> Path:
        """Get full path to the completion history database file"""
        return self._resolve_path("PLANNER_HISTORY_DB_PATH", "history_database_path")

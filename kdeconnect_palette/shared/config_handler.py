import toml
from pathlib import Path
from typing import Any, List, Optional, Dict, Union
from kdeconnect_palette.shared import config_template
from kdeconnect_palette.shared.path_handler import PathHandler


class ConfigHandler:
    """
    Manages the application's configuration file (config.toml) and provides
    a layered access interface.
    Handles file I/O and merging of the user's settings with the defaults
    from config_template.
    """

    def __init__(
        self,
        logger: Any,
        config_file: Optional[Union[str, Path]] = None,
        section: str = "kdeconnect",
    ):
        """
        Args:
            logger: The application logger.
            config_file: Explicit path to config.toml. Defaults to the XDG
                         config directory.
            section: The table used by get_plugin_setting.
        """
        self.logger = logger
        self.section = section
        self.default_config = config_template.default_config
        self._load_successful: bool = False
        if config_file is None:
            config_file = PathHandler().get_config_file()
        self.config_file = Path(config_file).expanduser()
        self.config_data = self.load_config()

    def _strip_hints(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Recursively removes keys ending with '_hint' from the configuration
        dictionary destined for TOML.
        """
        stripped_data = {}
        for key, value in data.items():
            if key.endswith(("_hint",)):
                continue
            if isinstance(value, dict):
                stripped_data[key] = self._strip_hints(value)
            else:
                stripped_data[key] = value
        return stripped_data

    @property
    def default_config_stripped(self) -> Dict[str, Any]:
        """Returns the default config without any setting metadata hints."""
        return self._strip_hints(self.default_config)

    def _recursive_merge(
        self,
        user_config: Dict[str, Any],
        default_config: Dict[str, Any],
    ) -> bool:
        """
        Recursively merges missing keys from `default_config` into `user_config`.
        Returns:
            True if any key was added.
        """
        write_back_needed = False
        for key, default_value in default_config.items():
            if key not in user_config:
                user_config[key] = default_value
                write_back_needed = True
            elif isinstance(default_value, dict) and isinstance(
                user_config.get(key), dict
            ):
                if self._recursive_merge(user_config[key], default_value):
                    write_back_needed = True
        return write_back_needed

    def save_config(self) -> None:
        """Writes the current state of self.config_data to the TOML file."""
        if not self._load_successful:
            self.logger.warning(
                "Skipping configuration save: config.toml failed to load. Please fix it manually."
            )
            return
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w") as f:
                toml.dump(self.config_data, f)
            self.logger.info(f"Configuration saved to {self.config_file}.")
        except OSError as e:
            self.logger.error(f"Failed to save configuration to file: {e}")

    def load_config(self) -> Dict[str, Any]:
        """
        Loads the configuration from file, or uses defaults if missing/corrupt.
        A file that fails to parse is left untouched and never saved over.
        Returns:
            The loaded and merged configuration dictionary.
        """
        config_from_file: Dict[str, Any] = {}
        file_must_be_created = not self.config_file.exists()
        self._load_successful = True
        if file_must_be_created:
            self.logger.info("Config file is missing. Will apply defaults and create.")
        else:
            try:
                with open(self.config_file, "r") as f:
                    config_from_file = toml.load(f)
                self.logger.debug("Existing config.toml loaded successfully.")
            except (OSError, toml.TomlDecodeError) as e:
                self.logger.error(
                    f"Failed to load {self.config_file}: {e}. Using default configuration."
                )
                self._load_successful = False
                config_from_file = {}
        self._recursive_merge(config_from_file, self.default_config_stripped)
        if file_must_be_created:
            self.logger.info(
                "Saving default configuration to file because it was missing."
            )
            self.config_data = config_from_file
            self.save_config()
        self.logger.debug("Configuration loaded and merged with defaults.")
        return config_from_file

    def get_root_setting(self, key_path: List[str], default_value: Any = None) -> Any:
        """
        Traverses the configuration dict to retrieve a value.
        Args:
            key_path: List of strings representing the path (e.g., ['kdeconnect', 'device_id']).
            default_value: Value to return if the path is not found.
        """
        current_data = self.config_data
        for i, key in enumerate(key_path):
            if isinstance(current_data, dict) and key in current_data:
                current_data = current_data[key]
            else:
                self.logger.debug(
                    f"Missing configuration key at path: {' -> '.join(key_path[: i + 1])}. Using default value: {default_value}"
                )
                return default_value
        return current_data

    def get_plugin_setting(
        self, key: Union[str, List[str]], default_value: Any = None
    ) -> Any:
        """Looks a key up inside this handler's section."""
        key_path = [key] if isinstance(key, str) else list(key)
        return self.get_root_setting([self.section] + key_path, default_value)

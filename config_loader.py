"""Configuration loader with YAML support and environment variable substitution."""

import copy
import os
import re
from typing import Any, Dict

import yaml

from converters.language_detector import DEFAULT_LANGUAGES, DEFAULT_MINIMUM_LENGTH
from logger import ALLOWED_LEVELS
from models import HierarchyMode

DEFAULT_CONFIG: Dict[str, Any] = {
    'importer': {
        'archives': [],
        'output_directory': './notion-export',
        'parent_pages_in_subfolders': True,
        'hierarchy_mode': HierarchyMode.NESTED.value,
        'single_line_breaks': False,
        'remove_table_of_contents': True,
        'language_detection_minimum_length': DEFAULT_MINIMUM_LENGTH,
        'auto_detected_languages': list(DEFAULT_LANGUAGES),
        'icon_property_name': 'sticker',
        'default_attachment_folder': './',
        'overwrite_existing': True,
    },
    'logging': {
        'level': None,
        'log_file': None,
    },
    'report': {
        'json_path': None,
    },
}

BOOLEAN_SETTINGS = (
    'parent_pages_in_subfolders',
    'single_line_breaks',
    'remove_table_of_contents',
    'overwrite_existing',
)


class ConfigLoader:
    """Handles loading and validation of configuration files."""

    ENV_VAR_PATTERN = re.compile(r'\$\{([A-Za-z_][A-Za-z0-9_]*)\}')

    @classmethod
    def load(cls, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from YAML file with environment variable substitution.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file is not a YAML mapping
        """
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                config_data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a dictionary")

        return cls._substitute_env_vars_recursive(config_data)

    @classmethod
    def with_defaults(cls, config: Dict[str, Any]) -> Dict[str, Any]:
        """Return ``config`` merged over DEFAULT_CONFIG; user values win."""
        return _deep_merge(DEFAULT_CONFIG, config or {})

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> None:
        """
        Validate configuration for required fields and correct values.

        Args:
            config: Configuration dictionary to validate

        Raises:
            ValueError: If validation fails
        """
        archives = get_nested(config, 'importer.archives')
        if not archives:
            raise ValueError("No archives given: set importer.archives or pass archive paths")
        cls._validate_string_list(archives, 'importer.archives')

        cls._validate_required_field(config, 'importer.output_directory')
        output_dir = get_nested(config, 'importer.output_directory')
        if os.path.exists(output_dir) and not os.path.isdir(output_dir):
            raise ValueError(f"importer.output_directory '{output_dir}' is not a directory")

        for name in BOOLEAN_SETTINGS:
            value = get_nested(config, f'importer.{name}', True)
            if not isinstance(value, bool):
                raise ValueError(f"importer.{name} must be a boolean")

        minimum_length = get_nested(config, 'importer.language_detection_minimum_length', DEFAULT_MINIMUM_LENGTH)
        if isinstance(minimum_length, bool) or not isinstance(minimum_length, int) or minimum_length < 0:
            raise ValueError("importer.language_detection_minimum_length must be a non-negative integer")

        cls._validate_string_list(
            get_nested(config, 'importer.auto_detected_languages', []),
            'importer.auto_detected_languages'
        )

        hierarchy_mode = get_nested(config, 'importer.hierarchy_mode', HierarchyMode.NESTED.value)
        try:
            HierarchyMode(hierarchy_mode)
        except ValueError:
            raise ValueError(
                f"importer.hierarchy_mode must be one of: {[mode.value for mode in HierarchyMode]}"
            )

        for name in ('icon_property_name', 'default_attachment_folder'):
            value = get_nested(config, f'importer.{name}', '')
            if value is not None and not isinstance(value, str):
                raise ValueError(f"importer.{name} must be a string")

        level = get_nested(config, 'logging.level')
        if level and str(level).upper() not in ALLOWED_LEVELS:
            raise ValueError(f"logging.level must be one of: {sorted(ALLOWED_LEVELS)}")

    @classmethod
    def merge_with_args(cls, config: Dict[str, Any], args) -> Dict[str, Any]:
        """
        Merge configuration file with CLI arguments.
        CLI arguments take precedence over config file values.

        Args:
            config: Base configuration dictionary
            args: CLI arguments with attributes matching config keys

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(config)

        for section in ('importer', 'logging', 'report'):
            if not isinstance(merged.get(section), dict):
                merged[section] = {}
        importer = merged['importer']

        if getattr(args, 'archives', None):
            importer['archives'] = list(args.archives)

        if getattr(args, 'output_dir', None):
            importer['output_directory'] = args.output_dir

        if getattr(args, 'flat', False):
            importer['hierarchy_mode'] = HierarchyMode.FLAT.value

        if getattr(args, 'parent_pages_in_subfolders', None) is not None:
            importer['parent_pages_in_subfolders'] = args.parent_pages_in_subfolders

        if getattr(args, 'single_line_breaks', False):
            importer['single_line_breaks'] = True

        if getattr(args, 'keep_toc', False):
            importer['remove_table_of_contents'] = False

        if getattr(args, 'min_language_length', None) is not None:
            importer['language_detection_minimum_length'] = args.min_language_length

        if getattr(args, 'languages', None):
            importer['auto_detected_languages'] = [
                name.strip() for name in args.languages.split(',') if name.strip()
            ]

        if getattr(args, 'icon_property', None) is not None:
            importer['icon_property_name'] = args.icon_property

        if getattr(args, 'attachment_folder', None) is not None:
            importer['default_attachment_folder'] = args.attachment_folder

        if getattr(args, 'report_json', None):
            merged['report']['json_path'] = args.report_json

        if getattr(args, 'log_file', None):
            merged['logging']['log_file'] = args.log_file

        return merged

    @classmethod
    def _substitute_env_vars_recursive(cls, data: Any) -> Any:
        """Recursively substitute environment variables in data structure."""
        if isinstance(data, dict):
            return {key: cls._substitute_env_vars_recursive(value) for key, value in data.items()}
        elif isinstance(data, list):
            return [cls._substitute_env_vars_recursive(item) for item in data]
        elif isinstance(data, str):
            return cls._substitute_env_vars(data)
        else:
            return data

    @classmethod
    def _substitute_env_vars(cls, value: str) -> str:
        """Substitute environment variables in a string value."""
        def replace_match(match):
            env_value = os.getenv(match.group(1))
            return env_value if env_value is not None else match.group(0)

        return cls.ENV_VAR_PATTERN.sub(replace_match, value)

    @staticmethod
    def _validate_required_field(config_section: dict, field: str) -> None:
        """Validate that a required field exists and has a value."""
        value = get_nested(config_section, field)
        if value is None or value == '':
            raise ValueError(f"Missing required configuration: {field}")

        if isinstance(value, str) and '${' in value:
            match = ConfigLoader.ENV_VAR_PATTERN.search(value)
            var_name = match.group(1) if match else value
            raise ValueError(
                f"Configuration field '{field}' contains unsubstituted environment variable: {value}. "
                f"Please set the {var_name} environment variable or provide a value in config file."
            )

    @staticmethod
    def _validate_string_list(value: Any, field: str) -> None:
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValueError(f"{field} must be a list of strings")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_nested(config: dict, path: str, default: Any = None) -> Any:
    """Safely retrieve nested configuration values using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "importer.output_directory")
        default: Default value if path doesn't exist

    Returns:
        Value at the nested path or default
    """
    keys = path.split('.')
    value = config

    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default

    return value


__all__ = ['ConfigLoader', 'DEFAULT_CONFIG', 'get_nested']

"""YAML configuration loading and validation.

This module handles loading and saving the sync configuration file
(outline-sync.yaml by default). A missing file yields the defaults; a file
that exists must be a valid YAML mapping matching the structure below.
"""

import logging
import os
from typing import Any, Dict

import yaml

from .errors import ConfigError, FilesystemError
from .models import BehaviorConfig, CollectionEntry, SyncConfig, SyncPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "outline-sync.yaml"


class ConfigLoader:
    """Handles configuration file loading, validation, and saving.

    Configuration file structure:
        outline:
          api_url: "https://app.getoutline.com/api"
        output_dir: "docs"
        collections:
          - url_id: "abc123"
            directory: "handbook"
            sync:
              enabled: true
              read_only: false
        behavior:
          skip_metadata: false
          include_images: false
          cleanup_after_download: true
          concurrency: 10
    """

    @classmethod
    def load(cls, config_path: str) -> SyncConfig:
        """Load and parse configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            SyncConfig object, the defaults if the file does not exist

        Raises:
            FilesystemError: If file cannot be read
            ConfigError: If configuration is invalid or malformed
        """
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            logger.info(f"No configuration file at {config_path} - using defaults")
            return SyncConfig()
        except OSError as e:
            raise FilesystemError(config_path, 'read', str(e))

        try:
            config_dict = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML syntax: {str(e)}")

        if config_dict is None:
            return SyncConfig()

        if not isinstance(config_dict, dict):
            raise ConfigError(
                f"Configuration must be a YAML dictionary, got {type(config_dict).__name__}"
            )

        return cls._parse_config(config_dict)

    @classmethod
    def save(cls, config_path: str, sync_config: SyncConfig) -> None:
        """Save configuration to a YAML file.

        Raises:
            FilesystemError: If file cannot be written
        """
        collections = []
        for entry in sync_config.collections:
            entry_dict: Dict[str, Any] = {'url_id': entry.url_id}
            if entry.directory:
                entry_dict['directory'] = entry.directory
            entry_dict['sync'] = {
                'enabled': entry.sync.enabled,
                'read_only': entry.sync.read_only,
            }
            collections.append(entry_dict)

        behavior = sync_config.behavior
        config_dict = {
            'outline': {'api_url': sync_config.api_url},
            'output_dir': sync_config.output_dir,
            'collections': collections,
            'behavior': {
                'skip_metadata': behavior.skip_metadata,
                'include_images': behavior.include_images,
                'cleanup_after_download': behavior.cleanup_after_download,
                'concurrency': behavior.concurrency,
            },
        }

        yaml_str = yaml.safe_dump(
            config_dict,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False
        )

        config_dir = os.path.dirname(config_path)
        try:
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                f.write(yaml_str)
        except OSError as e:
            raise FilesystemError(config_path, 'write', str(e))

    @classmethod
    def _parse_config(cls, config_dict: Dict[str, Any]) -> SyncConfig:
        """Parse and validate configuration dictionary.

        Raises:
            ConfigError: If configuration is invalid
        """
        defaults = SyncConfig()

        outline = _mapping(config_dict.get('outline'), 'outline')
        api_url = _string(outline.get('api_url', defaults.api_url), 'outline.api_url')
        output_dir = _string(config_dict.get('output_dir', defaults.output_dir), 'output_dir')

        collections_raw = config_dict.get('collections')
        if collections_raw is None:
            collections_raw = []
        if not isinstance(collections_raw, list):
            raise ConfigError("Field 'collections' must be a list", 'collections')

        collections = [
            cls._parse_collection(item, f'collections[{i}]')
            for i, item in enumerate(collections_raw)
        ]

        return SyncConfig(
            api_url=api_url.rstrip('/'),
            output_dir=output_dir,
            collections=collections,
            behavior=cls._parse_behavior(_mapping(config_dict.get('behavior'), 'behavior')),
        )

    @classmethod
    def _parse_collection(cls, item: Any, field_name: str) -> CollectionEntry:
        if not isinstance(item, dict):
            raise ConfigError("Collection entry must be a dictionary", field_name)

        url_id = item.get('url_id')
        if not isinstance(url_id, str) or not url_id.strip():
            raise ConfigError("Field 'url_id' is required", f'{field_name}.url_id')

        directory = item.get('directory')
        if directory is not None:
            directory = _string(directory, f'{field_name}.directory')

        sync = _mapping(item.get('sync'), f'{field_name}.sync')
        return CollectionEntry(
            url_id=url_id,
            directory=directory,
            sync=SyncPolicy(
                enabled=_bool(sync.get('enabled', True), f'{field_name}.sync.enabled'),
                read_only=_bool(sync.get('read_only', False), f'{field_name}.sync.read_only'),
            ),
        )

    @classmethod
    def _parse_behavior(cls, behavior: Dict[str, Any]) -> BehaviorConfig:
        defaults = BehaviorConfig()
        concurrency = behavior.get('concurrency', defaults.concurrency)
        if isinstance(concurrency, bool) or not isinstance(concurrency, int):
            raise ConfigError("Field must be an integer", 'behavior.concurrency')
        if concurrency < 1:
            raise ConfigError(
                f"Field must be at least 1, got {concurrency}", 'behavior.concurrency'
            )

        return BehaviorConfig(
            skip_metadata=_bool(
                behavior.get('skip_metadata', defaults.skip_metadata),
                'behavior.skip_metadata',
            ),
            include_images=_bool(
                behavior.get('include_images', defaults.include_images),
                'behavior.include_images',
            ),
            cleanup_after_download=_bool(
                behavior.get('cleanup_after_download', defaults.cleanup_after_download),
                'behavior.cleanup_after_download',
            ),
            concurrency=concurrency,
        )


def _mapping(value: Any, field_name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError("Field must be a dictionary", field_name)
    return value


def _string(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError("Field must be a non-empty string", field_name)
    return value


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError("Field must be true or false", field_name)
    return value

"""Shared orchestration for the download and upload commands.

Both commands load the configuration, open one APIWrapper and one
ConcurrencyLimiter for the whole run, select the collections to process
and translate failures into exit codes. Subclasses implement _execute().
"""

import asyncio
import logging
import os
from typing import List, Optional, Sequence

from ..file_mapper.config_loader import DEFAULT_CONFIG_FILENAME, ConfigLoader
from ..file_mapper.errors import ConfigError, FileMapperError
from ..file_mapper.models import CollectionConfig, SyncConfig
from ..outline_client.api_wrapper import APIWrapper
from ..outline_client.auth import Authenticator
from ..outline_client.concurrency import ConcurrencyLimiter
from ..outline_client.errors import (
    APIAccessError,
    APIUnreachableError,
    InvalidCredentialsError,
    RemoteOperationError,
)
from .collection_filter import select_collections
from .errors import CLIError, ConfigNotFoundError
from .models import ExitCode
from .output import OutputHandler

logger = logging.getLogger(__name__)


class BaseCommand:
    """Common setup and error handling for sync commands.

    Attributes:
        config_path: Configuration file path
        output_handler: Terminal output
        authenticator: Credential loader (created from the config if None)
        api: Remote client (created from the authenticator if None)
    """

    name = "sync"

    def __init__(
        self,
        config_path: Optional[str] = None,
        output_handler: Optional[OutputHandler] = None,
        authenticator: Optional[Authenticator] = None,
        api: Optional[APIWrapper] = None,
    ):
        """Initialize the command.

        Args:
            config_path: Configuration file; an explicitly given path must exist
            output_handler: OutputHandler for terminal output (optional)
            authenticator: Authenticator for the Outline API (optional)
            api: APIWrapper to use instead of creating one (optional)
        """
        self._config_explicit = config_path is not None
        self.config_path = config_path or DEFAULT_CONFIG_FILENAME
        self.output_handler = output_handler or OutputHandler()
        self.authenticator = authenticator
        self.api = api

    def load_config(self) -> SyncConfig:
        """Load the configuration file.

        Raises:
            ConfigNotFoundError: If an explicitly given file does not exist
            ConfigError: If the file is invalid
        """
        if self._config_explicit and not os.path.exists(self.config_path):
            raise ConfigNotFoundError(self.config_path)
        logger.info(f"Loading configuration from {self.config_path}")
        return ConfigLoader.load(self.config_path)

    def run(
        self,
        output_dir: Optional[str] = None,
        collections: Optional[Sequence[str]] = None,
    ) -> ExitCode:
        """Execute the command and translate failures to exit codes.

        Args:
            output_dir: Root directory override (--dir)
            collections: URL IDs to restrict the run to (--collections)

        Returns:
            ExitCode indicating success or specific failure type
        """
        try:
            config = self.load_config()
            return asyncio.run(self._run_async(config, output_dir, collections))

        except InvalidCredentialsError as e:
            logger.error(f"Authentication failed: {e}")
            self.output_handler.error(f"Authentication failed: {e}")
            self.output_handler.info("Check the OUTLINE_API_TOKEN environment variable")
            return ExitCode.AUTH_ERROR

        except (APIUnreachableError, APIAccessError) as e:
            logger.error(f"API error: {e}")
            self.output_handler.error(f"API error: {e}")
            self.output_handler.info("Check your internet connection and try again")
            return ExitCode.NETWORK_ERROR

        except (ConfigError, ConfigNotFoundError) as e:
            logger.error(f"Configuration error: {e}")
            self.output_handler.error(f"Configuration error: {e}")
            return ExitCode.GENERAL_ERROR

        except (CLIError, FileMapperError, RemoteOperationError) as e:
            logger.error(f"{self.name} failed: {e}")
            self.output_handler.error(f"{self.name.capitalize()} failed: {e}")
            return ExitCode.GENERAL_ERROR

        except Exception as e:
            logger.exception(f"Unexpected error during {self.name}")
            self.output_handler.error(f"Unexpected error: {e}")
            return ExitCode.GENERAL_ERROR

    async def _run_async(
        self,
        config: SyncConfig,
        output_dir: Optional[str],
        only: Optional[Sequence[str]],
    ) -> ExitCode:
        if self.authenticator is None:
            self.authenticator = Authenticator(default_api_url=config.api_url)
        api = self.api or APIWrapper(self.authenticator)
        limiter = ConcurrencyLimiter(config.behavior.concurrency)

        async with api:
            with self.output_handler.spinner("Fetching collections..."):
                remote = await api.list_collections()
            selected = select_collections(remote, config, output_dir, only)
            if not selected:
                self.output_handler.warning(f"No collections found to {self.name}")
                return ExitCode.SUCCESS

            self.output_handler.success(f"Found {len(selected)} collection(s) to {self.name}")
            return await self._execute(api, limiter, config, selected)

    async def _execute(
        self,
        api: APIWrapper,
        limiter: ConcurrencyLimiter,
        config: SyncConfig,
        collections: List[CollectionConfig],
    ) -> ExitCode:
        raise NotImplementedError

"""Settings are read from the environment. A `.env` file in the working directory (or the
file passed to `load_config`) is loaded first; variables already set in the environment win.

    DEXT_HOST_BUNDLE_IDENTIFIER='com.example.apple-samplecode.SimpleAudio'
    DEXT_IDENTIFIER_SUFFIX='.Driver'
    DEXT_DRIVER_NAME='SimpleAudioDriver'
    DEXT_ACTIVATOR='auto'          # auto, system, simulated, unsupported
    DEXT_LOG_LEVEL='INFO'
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from dext_manager.activation.extension_identifier import DEFAULT_DRIVER_SUFFIX, make_extension_identifier
from dext_manager.activation.status_text import DEFAULT_DRIVER_NAME
from dext_manager.platform.activators.activator_factory import ActivatorKind

ENV_HOST_BUNDLE_IDENTIFIER = "DEXT_HOST_BUNDLE_IDENTIFIER"
ENV_IDENTIFIER_SUFFIX = "DEXT_IDENTIFIER_SUFFIX"
ENV_DRIVER_NAME = "DEXT_DRIVER_NAME"
ENV_ACTIVATOR = "DEXT_ACTIVATOR"
ENV_LOG_LEVEL = "DEXT_LOG_LEVEL"

DEFAULT_HOST_BUNDLE_IDENTIFIER = "com.example.apple-samplecode.SimpleAudio"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class DextManagerConfig:
    """Settings of a dext-manager process.

    Attributes:
        host_bundle_identifier: Bundle identifier of the application that embeds the driver.
        identifier_suffix: Label appended to $host_bundle_identifier to form the extension identifier.
        driver_name: Name of the driver shown in status sentences.
        activator_kind: Which ExtensionActivator to create.
        log_level: Name of the logging level for the demo (e.g. 'INFO').
    """

    host_bundle_identifier: str = DEFAULT_HOST_BUNDLE_IDENTIFIER
    identifier_suffix: str = DEFAULT_DRIVER_SUFFIX
    driver_name: str = DEFAULT_DRIVER_NAME
    activator_kind: ActivatorKind = ActivatorKind.AUTO
    log_level: str = DEFAULT_LOG_LEVEL

    def __post_init__(self):
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"$log_level must be a logging level name like 'DEBUG' or 'INFO', but provided value is: '{self.log_level}'")
        if not self.driver_name:
            raise ValueError(f"$driver_name cannot be empty, but provided value is: '{self.driver_name}'")
        # Validates $host_bundle_identifier and $identifier_suffix
        make_extension_identifier(self.host_bundle_identifier, self.identifier_suffix)

    @property
    def extension_identifier(self) -> str:
        return make_extension_identifier(self.host_bundle_identifier, self.identifier_suffix)


def parse_activator_kind(value: str) -> ActivatorKind:
    """Parse $value (case-insensitive) into an ActivatorKind.

    Raises:
        ValueError: If $value names no ActivatorKind.
    """
    normalized = value.strip().lower()
    for kind in ActivatorKind:
        if kind.value == normalized:
            return kind
    valid_values = [kind.value for kind in ActivatorKind]
    raise ValueError(f"${ENV_ACTIVATOR} must be one of {valid_values}, but provided value is: '{value}'")


def config_from_mapping(env: Mapping[str, str]) -> DextManagerConfig:
    """Build a DextManagerConfig from $env, using defaults for missing keys."""
    return DextManagerConfig(
        host_bundle_identifier=env.get(ENV_HOST_BUNDLE_IDENTIFIER, DEFAULT_HOST_BUNDLE_IDENTIFIER),
        identifier_suffix=env.get(ENV_IDENTIFIER_SUFFIX, DEFAULT_DRIVER_SUFFIX),
        driver_name=env.get(ENV_DRIVER_NAME, DEFAULT_DRIVER_NAME),
        activator_kind=parse_activator_kind(env.get(ENV_ACTIVATOR, ActivatorKind.AUTO.value)),
        log_level=env.get(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper(),
    )


def load_config(env_file: Optional[str] = None) -> DextManagerConfig:
    """Load `.env` (or $env_file) into the environment and build the config from it."""
    load_dotenv(env_file if env_file is not None else find_dotenv(usecwd=True))
    return config_from_mapping(os.environ)

"""
flexlm-options config package public API.

File: src/flexlm_options/config/__init__.py

Purpose
- Export config loading/validation entrypoints and public error types.

Functional requirements
- Support loading from ``flexlm_options.toml`` + ``FLEXOPT_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from flexlm_options.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    PATH_FIELDS,
    ConfigLoadError,
    RuntimeSettings,
    dump_effective_config,
    load_config,
    load_settings,
    normalize_paths,
)
from flexlm_options.config.schema import (
    DEFAULT_CONFIG,
    LOG_LEVELS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    FlexOptionsConfig,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)

__all__ = [
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "FlexOptionsConfig",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "RuntimeSettings",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "load_config",
    "load_settings",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]

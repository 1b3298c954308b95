# =============================================================================
# Runtime Configuration
# =============================================================================
# Process configuration is read from the environment once at startup.
# =============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from simple_lambda.runtime.errors import ConfigurationError

logger = logging.getLogger(__name__)


class RuntimeVariables:
    """Environment variable names consumed by the runtime."""
    AWS_LAMBDA_RUNTIME_API = "AWS_LAMBDA_RUNTIME_API"
    HANDLER = "_HANDLER"
    LAMBDA_TASK_ROOT = "LAMBDA_TASK_ROOT"
    FUNCTION_NAME = "AWS_LAMBDA_FUNCTION_NAME"
    FUNCTION_VERSION = "AWS_LAMBDA_FUNCTION_VERSION"
    FUNCTION_MEMORY_SIZE = "AWS_LAMBDA_FUNCTION_MEMORY_SIZE"
    LOG_GROUP_NAME = "AWS_LAMBDA_LOG_GROUP_NAME"
    LOG_STREAM_NAME = "AWS_LAMBDA_LOG_STREAM_NAME"
    REGION = "AWS_REGION"
    TRACE_ID = "_X_AMZN_TRACE_ID"
    HANDLER_QUALIFIER = "SIMPLE_LAMBDA_HANDLER_QUALIFIER"
    POST_TIMEOUT = "SIMPLE_LAMBDA_POST_TIMEOUT"
    AWS_LAMBDA_LOG_LEVEL = "AWS_LAMBDA_LOG_LEVEL"
    LOG_LEVEL = "LOG_LEVEL"


DEFAULT_REGION = "us-east-1"
DEFAULT_QUALIFIER = "inputEvent"
DEFAULT_POST_TIMEOUT = 30.0
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass(frozen=True)
class RuntimeConfig:
    """
    Immutable snapshot of the process configuration.

    Attributes:
        runtime_api: host:port of the control plane (required)
        handler: default `module.function` of the user function
        task_root: directory the user code lives in
        function_name / function_version / memory_limit_in_mb /
        log_group_name / log_stream_name: function metadata copied to contexts
        region: region used for AWS clients in the runtime context
        qualifier: event handler variant to bind
        post_timeout: timeout in seconds for response/error POSTs
        log_level: root log level name
    """
    runtime_api: str
    handler: str = ""
    task_root: str = ""
    function_name: str = ""
    function_version: str = ""
    memory_limit_in_mb: Optional[int] = None
    log_group_name: str = ""
    log_stream_name: str = ""
    region: str = DEFAULT_REGION
    qualifier: str = DEFAULT_QUALIFIER
    post_timeout: float = DEFAULT_POST_TIMEOUT
    log_level: str = "INFO"

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] = None) -> "RuntimeConfig":
        """
        Build configuration from environment variables.

        Raises:
            ConfigurationError: AWS_LAMBDA_RUNTIME_API is missing or empty,
                or a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ

        return cls(
            runtime_api=get_runtime_api(env),
            handler=env.get(RuntimeVariables.HANDLER, ""),
            task_root=env.get(RuntimeVariables.LAMBDA_TASK_ROOT, ""),
            function_name=env.get(RuntimeVariables.FUNCTION_NAME, ""),
            function_version=env.get(RuntimeVariables.FUNCTION_VERSION, ""),
            memory_limit_in_mb=_get_int(env, RuntimeVariables.FUNCTION_MEMORY_SIZE),
            log_group_name=env.get(RuntimeVariables.LOG_GROUP_NAME, ""),
            log_stream_name=env.get(RuntimeVariables.LOG_STREAM_NAME, ""),
            region=env.get(RuntimeVariables.REGION) or DEFAULT_REGION,
            qualifier=env.get(RuntimeVariables.HANDLER_QUALIFIER) or DEFAULT_QUALIFIER,
            post_timeout=_get_float(env, RuntimeVariables.POST_TIMEOUT, DEFAULT_POST_TIMEOUT),
            log_level=get_log_level(env),
        )


def get_runtime_api(environ: Mapping[str, str] = None) -> str:
    """
    Control plane address (host:port) from AWS_LAMBDA_RUNTIME_API.

    Raises:
        ConfigurationError: the variable is missing or empty
    """
    env = os.environ if environ is None else environ
    runtime_api = env.get(RuntimeVariables.AWS_LAMBDA_RUNTIME_API, "").strip()
    if not runtime_api:
        raise ConfigurationError(
            f"Missing '{RuntimeVariables.AWS_LAMBDA_RUNTIME_API}' environment variable. "
            "Custom runtime can only be run within AWS Lambda environment."
        )
    return runtime_api


def get_log_level(environ: Mapping[str, str] = None) -> str:
    """Log level name from AWS_LAMBDA_LOG_LEVEL or LOG_LEVEL, default INFO."""
    env = os.environ if environ is None else environ
    level = env.get(RuntimeVariables.AWS_LAMBDA_LOG_LEVEL) or env.get(RuntimeVariables.LOG_LEVEL) or "INFO"
    return level.upper()


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the runtime process."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    try:
        root.setLevel(level.upper())
    except ValueError:
        root.setLevel(logging.INFO)
        logger.warning(f"Unknown log level '{level}', using INFO")


def _get_int(env: Mapping[str, str], key: str) -> Optional[int]:
    raw = env.get(key)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable '{key}' must be an integer, got: {raw!r}")


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"Environment variable '{key}' must be a number, got: {raw!r}")

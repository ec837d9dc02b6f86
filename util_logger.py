# ============================================================================
# CLAUDE CONTEXT - LOGGING
# ============================================================================
# STATUS: Core Infrastructure - used by triggers, services and adapters
# PURPOSE: JSON-only structured logging for Azure Functions with Application Insights
# LAST_REVIEWED: 18 OCT 2026
# EXPORTS: ComponentType, LogLevel, LogContext, ComponentConfig, JSONFormatter,
#          LoggerFactory, log_exceptions
# INTERFACES: Dataclass models, enums, factory, JSON formatter, exception decorator
# DEPENDENCIES: enum, dataclasses, typing, datetime, logging, json, traceback (stdlib only!)
# SCOPE: Foundation and factory layers for all logging in the application
# PATTERNS: JSON-only output, Azure Functions integration, Exception decorator pattern
# ENTRY_POINTS: LoggerFactory.create_logger(), LoggerFactory.create_for_request(),
#               @log_exceptions decorator
# ============================================================================

"""
Unified Logger System

Component loggers that emit one JSON object per line on stdout and attach a
`customDimensions` block Application Insights indexes automatically.

Request correlation: a trigger builds a LogContext from the incoming request
(invocation id, route, collection/item ids) and every record logged through
that logger carries it.

Set DEBUG_LOGGING=true to lower the default level to DEBUG.
"""

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass
import functools
import logging
import os
import sys
import json
import traceback
from functools import wraps


# ============================================================================
# COMPONENT TYPES
# ============================================================================

class ComponentType(Enum):
    """
    Component types by architectural layer.

    Each layer has specific logging needs and levels.
    """
    TRIGGER = "trigger"        # HTTP entry points
    SERVICE = "service"        # Request orchestration
    REPOSITORY = "repository"  # Storage access
    ADAPTER = "adapter"        # Pluggable search backends
    VALIDATOR = "validator"    # Parameter validation


# ============================================================================
# LOG LEVELS - Standard Python levels with enum safety
# ============================================================================

class LogLevel(Enum):
    """
    Standard Python log levels as enum for type safety.
    """
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_python_level(self) -> int:
        """Convert to Python logging level constant."""
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, level: str) -> 'LogLevel':
        """Create from string, case-insensitive."""
        return cls[level.upper()]


# ============================================================================
# LOG CONTEXT - Request correlation
# ============================================================================

@dataclass
class LogContext:
    """
    Context for correlating every record of one HTTP request.
    """
    # Request correlation
    request_id: Optional[str] = None  # Azure Functions invocation id
    http_method: Optional[str] = None
    endpoint: Optional[str] = None  # Route, e.g. stac/collections/{collection_id}/items

    # Catalog entities addressed by the route
    collection_id: Optional[str] = None
    item_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            k: v for k, v in {
                'request_id': self.request_id,
                'http_method': self.http_method,
                'endpoint': self.endpoint,
                'collection_id': self.collection_id,
                'item_id': self.item_id
            }.items() if v is not None
        }


# ============================================================================
# COMPONENT CONFIGURATION - Per-component settings
# ============================================================================

@dataclass
class ComponentConfig:
    """
    Configuration for component-specific logging.
    """
    component_type: ComponentType
    log_level: LogLevel = LogLevel.INFO
    max_message_length: int = 1000


# ============================================================================
# JSON FORMATTER - Structured logging for Azure Functions
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in Azure Functions.
    Outputs logs in a format that Application Insights can automatically parse.
    """

    def __init__(self, max_message_length: Optional[int] = None):
        super().__init__()
        self.max_message_length = max_message_length

    def format(self, record: logging.LogRecord) -> str:
        """
        Format log record as JSON for Application Insights.

        Args:
            record: Python LogRecord to format

        Returns:
            JSON string with structured log data
        """
        message = record.getMessage()
        if self.max_message_length and len(message) > self.max_message_length:
            message = message[:self.max_message_length] + "...(truncated)"

        log_obj = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'message': message,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add custom dimensions if present (for Application Insights)
        if hasattr(record, 'custom_dimensions'):
            log_obj['customDimensions'] = record.custom_dimensions

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_obj, default=str)


# ============================================================================
# LOGGER FACTORY - Creates component-specific loggers
# ============================================================================

class LoggerFactory:
    """
    Factory for creating component-specific loggers.

    Example:
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "STACAPIService")
        logger.info("Searching items")
    """

    default_level = LogLevel.DEBUG if os.getenv('DEBUG_LOGGING', '').lower() == 'true' else LogLevel.INFO

    DEFAULT_CONFIGS = {
        ComponentType.TRIGGER: ComponentConfig(
            component_type=ComponentType.TRIGGER,
            log_level=default_level
        ),
        ComponentType.SERVICE: ComponentConfig(
            component_type=ComponentType.SERVICE,
            log_level=default_level
        ),
        ComponentType.REPOSITORY: ComponentConfig(
            component_type=ComponentType.REPOSITORY,
            log_level=default_level
        ),
        ComponentType.ADAPTER: ComponentConfig(
            component_type=ComponentType.ADAPTER,
            log_level=default_level
        ),
        ComponentType.VALIDATOR: ComponentConfig(
            component_type=ComponentType.VALIDATOR,
            log_level=LogLevel.DEBUG  # Parameter dumps are only useful at debug
        )
    }

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        context: Optional[LogContext] = None,
        config: Optional[ComponentConfig] = None
    ) -> logging.Logger:
        """
        Create a logger for a specific component.

        Args:
            component_type: Type of component
            name: Component name (e.g., "STACAPIService")
            context: Optional log context for correlation
            config: Optional custom configuration

        Returns:
            Configured Python logger
        """
        if config is None:
            config = cls.DEFAULT_CONFIGS.get(
                component_type,
                ComponentConfig(component_type=component_type)
            )

        logger_name = f"{component_type.value}.{name}"
        logger = logging.getLogger(logger_name)

        log_level = config.log_level.to_python_level()
        logger.setLevel(log_level)

        # Remove existing handlers to avoid duplicates
        logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(log_level)
        handler.setFormatter(JSONFormatter(config.max_message_length))
        logger.addHandler(handler)

        # Allow propagation to Azure's root logger for Application Insights
        logger.propagate = True

        # Bind the class implementation so repeated calls do not stack wrappers
        original_log = functools.partial(logging.Logger._log, logger)

        def log_with_context(level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=1):
            """Wrapper to inject context as custom dimensions."""
            extra = dict(extra) if extra else {}

            custom_dims = context.to_dict() if context else {}
            custom_dims['component_type'] = component_type.value
            custom_dims['component_name'] = name

            if 'custom_dimensions' in extra:
                custom_dims.update(extra['custom_dimensions'])

            extra['custom_dimensions'] = custom_dims

            original_log(level, msg, args, exc_info=exc_info, extra=extra,
                         stack_info=stack_info, stacklevel=stacklevel + 1)

        logger._log = log_with_context

        return logger

    @classmethod
    def create_for_request(
        cls,
        component_type: ComponentType,
        name: str,
        request_id: Optional[str] = None,
        http_method: Optional[str] = None,
        endpoint: Optional[str] = None,
        collection_id: Optional[str] = None,
        item_id: Optional[str] = None
    ) -> logging.Logger:
        """
        Create logger with request context.

        Convenience method for triggers: every record carries the request's
        correlation fields.
        """
        context = LogContext(
            request_id=request_id,
            http_method=http_method,
            endpoint=endpoint,
            collection_id=collection_id,
            item_id=item_id
        )
        return cls.create_logger(
            component_type=component_type,
            name=name,
            context=context if context.to_dict() else None
        )


# ============================================================================
# EXCEPTION DECORATOR - Automatic exception logging with context
# ============================================================================

def log_exceptions(component_type: Optional[ComponentType] = None,
                   component_name: Optional[str] = None,
                   logger: Optional[logging.Logger] = None):
    """
    Decorator to log exceptions with full context, then re-raise.

    Can be used in three ways:
    1. With existing logger: @log_exceptions(logger=my_logger)
    2. With component info: @log_exceptions(ComponentType.SERVICE, "STACAPIService")
    3. Simple: @log_exceptions() - uses function module and name

    Example:
        @log_exceptions(ComponentType.SERVICE, "STACAPIService")
        def search_items(self, params):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if logger:
                    log = logger
                elif component_type and component_name:
                    log = LoggerFactory.create_logger(component_type, component_name)
                else:
                    log = LoggerFactory.create_logger(
                        ComponentType.SERVICE,
                        func.__module__ or "unknown"
                    )

                log.error(
                    f"Exception in {func.__name__}",
                    exc_info=True,
                    extra={
                        'custom_dimensions': {
                            'function_name': func.__name__,
                            'function_module': func.__module__,
                            'exception_type': type(e).__name__,
                            'exception_message': str(e),
                            'function_args': str(args)[:500],
                            'function_kwargs': str(kwargs)[:500],
                            'traceback': traceback.format_exc()
                        }
                    }
                )
                raise
        return wrapper
    return decorator

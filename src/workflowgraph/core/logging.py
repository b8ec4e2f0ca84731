"""Logging Configuration with pretty formatting for Workflowgraph."""

import logging
from typing import Optional, Dict, Any, Union
from enum import Enum, IntEnum
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

# ANSI Color Codes
class Colors:
    """ANSI color codes for pretty terminal output."""
    HEADER = '\033[95m'      # Pink
    INFO = '\033[94m'        # Blue
    SUCCESS = '\033[92m'     # Green
    WARNING = '\033[93m'     # Yellow
    ERROR = '\033[91m'       # Red
    RESET = '\033[0m'        # Reset
    BOLD = '\033[1m'         # Bold
    DIM = '\033[2m'          # Dim

# Pretty format strings
PRETTY_FORMAT = (
    "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
)

DETAILED_FORMAT = (
    f"{Colors.DIM}%(asctime)s{Colors.RESET} │ "
    f"%(colored_level)-40s │ "
    f"{Colors.DIM}%(name)s{Colors.RESET} │ "
    f"%(message)s"
)

class PrettyFormatter(logging.Formatter):
    """Custom formatter with colors and symbols."""

    level_colors = {
        'DEBUG': (Colors.DIM, '🔍'),
        'VERBOSE': (Colors.DIM, '·'),
        'INFO': (Colors.INFO, 'ℹ️'),
        'WARNING': (Colors.WARNING, '⚠️'),
        'ERROR': (Colors.ERROR, '❌'),
        'CRITICAL': (Colors.ERROR + Colors.BOLD, '🚨'),
        'VALIDATION': (Colors.HEADER, '✔'),
    }

    def format(self, record):
        # Add colored level with symbol
        color, symbol = self.level_colors.get(record.levelname, (Colors.RESET, '•'))
        record.colored_level = f"{color}{symbol} {record.levelname}{Colors.RESET}"

        message = super().format(record)

        # Add separator line for errors
        if record.levelno >= logging.ERROR:
            message = f"{message}\n{Colors.DIM}{'─' * 80}{Colors.RESET}"

        return message

class PrettyLogHandler(logging.StreamHandler):
    """Handler that adds pretty formatting to log records."""

    def emit(self, record):
        try:
            record.asctime = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
            msg = self.format(record)
            self.stream.write(msg + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)

class LogComponent(str, Enum):
    """Components that can be logged."""
    GRAPH = "workflowgraph.core.graph"
    NODES = "workflowgraph.core.graph.nodes"
    ALGORITHMS = "workflowgraph.core.graph.algorithms"
    CONCURRENT = "workflowgraph.core.graph.concurrent"
    REFERENCES = "workflowgraph.core.graph.references"
    SWIMLANES = "workflowgraph.core.graph.swimlanes"
    ACTIONS = "workflowgraph.core.graph.actions"
    VALIDATION = "workflowgraph.core.validation"
    CONFIG = "workflowgraph.core.config"

class LogLevel(IntEnum):
    """Log levels mapped to logging module levels."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL
    VALIDATION = 25  # Custom level for validation summaries

class VerbosityLevel(IntEnum):
    """Custom verbosity levels for more granular control."""
    DEBUG = logging.DEBUG
    VERBOSE = 15  # Custom lower-than-INFO level
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

# Register custom log levels
logging.addLevelName(LogLevel.VALIDATION, "VALIDATION")
logging.addLevelName(VerbosityLevel.VERBOSE, "VERBOSE")

class LoggingConfig(BaseModel):
    """Configuration for logging behavior."""
    level: VerbosityLevel = Field(default=VerbosityLevel.INFO)
    pretty: bool = Field(default=True)
    log_file: Optional[str] = Field(default=None)
    component_levels: Dict[LogComponent, LogLevel] = Field(default_factory=dict)

    @field_validator("level", mode="before")
    @classmethod
    def _level_by_name(cls, value: Any) -> Any:
        """Accept level names such as "verbose" as well as numbers."""
        if isinstance(value, str) and not value.isdigit():
            name = value.strip().upper()
            if name not in VerbosityLevel.__members__:
                raise ValueError(f"Unknown log level: {value}")
            return VerbosityLevel[name]
        return value


def configure_logging(
    default_level: Union[LogLevel, VerbosityLevel] = LogLevel.INFO,
    component_levels: Optional[Dict[LogComponent, LogLevel]] = None,
    pretty: bool = True,
    log_file: Optional[str] = None
) -> None:
    """Configure logging with pretty formatting."""
    handlers = []

    # Console handler with pretty formatting
    console_handler = PrettyLogHandler() if pretty else logging.StreamHandler()
    console_handler.setFormatter(
        PrettyFormatter(DETAILED_FORMAT if pretty else PRETTY_FORMAT)
    )
    handlers.append(console_handler)

    # File handler if specified (without colors)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(PRETTY_FORMAT))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(int(default_level))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    if not component_levels:
        component_levels = {
            LogComponent.GRAPH: LogLevel.INFO,
            LogComponent.NODES: LogLevel.INFO,
            LogComponent.VALIDATION: LogLevel.VALIDATION,
        }

    for component, level in component_levels.items():
        logger = logging.getLogger(component.value)
        logger.setLevel(int(level))

def configure_from_config(config: LoggingConfig) -> None:
    """Apply a LoggingConfig to the logging system."""
    configure_logging(
        default_level=config.level,
        component_levels=config.component_levels or None,
        pretty=config.pretty,
        log_file=config.log_file,
    )

def get_logger(component: LogComponent) -> logging.Logger:
    """Get a logger for a specific component."""
    return logging.getLogger(component.value)

def log_verbose(logger: logging.Logger, message: str) -> None:
    """Log a message at VERBOSE level."""
    if logger.isEnabledFor(VerbosityLevel.VERBOSE):
        logger.log(VerbosityLevel.VERBOSE, message)

def log_validation(logger: logging.Logger, message: str) -> None:
    """Log a validation summary at the VALIDATION level."""
    logger.log(LogLevel.VALIDATION, message)

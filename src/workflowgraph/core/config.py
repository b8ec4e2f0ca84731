"""Engine Configuration

Holds the tunable defaults shared across the engine:
1. Model metadata defaults (version string)
2. Reference node naming and the editable property whitelist
3. Swimlane geometry defaults
4. Which validation codes block a save
5. Logging behaviour

Every field can be set from a ``WORKFLOWGRAPH_``-prefixed environment
variable, e.g. ``WORKFLOWGRAPH_DEFAULT_SWIMLANE_WIDTH=800`` or
``WORKFLOWGRAPH_LOGGING__LEVEL=verbose``.
"""

import logging
from typing import Annotated, Any, FrozenSet, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from workflowgraph.core.logging import LogComponent, LoggingConfig

logger = logging.getLogger(LogComponent.CONFIG.value)

ENV_PREFIX = "WORKFLOWGRAPH_"

DEFAULT_SAVE_BLOCKING_CODES: FrozenSet[str] = frozenset({
    "workflow.decision-table.duplicate-decision-rows",
    "workflow.decision-table.missing-decision-columns",
    "workflow.decision-table.missing-output-columns",
    "workflow.concurrent-node.contains-cycle",
    "workflow.edge.source-not-found",
    "workflow.edge.target-not-found",
})


class WorkflowGraphConfig(BaseSettings):
    """Configuration for the workflow graph engine.

    Attributes:
        model_version: Version string stamped on new workflow models
        reference_name_suffix: Appended to a source name when cloning it
        reference_editable_properties: Fields a reference node may change
        default_swimlane_width: Width given to new swimlanes
        default_swimlane_height: Height given to new swimlanes
        check_disconnected_nodes: Whether whole-model validation warns
            about nodes that appear in no edge
        save_blocking_codes: Validation codes that block a save. Read from
            the environment as a comma separated list.
        logging: Logging behaviour
    """
    model_version: str = Field(default="1.0.0")
    reference_name_suffix: str = Field(default=" (Reference)")
    reference_editable_properties: Tuple[str, ...] = Field(
        default=("name", "stepDisplay")
    )
    default_swimlane_width: float = Field(default=400)
    default_swimlane_height: float = Field(default=300)
    check_disconnected_nodes: bool = Field(default=True)
    save_blocking_codes: Annotated[FrozenSet[str], NoDecode] = Field(
        default=DEFAULT_SAVE_BLOCKING_CODES
    )
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
        protected_namespaces=(),
    )

    @field_validator("default_swimlane_width", "default_swimlane_height")
    @classmethod
    def _positive_size(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Swimlane dimensions must be positive")
        return value

    @field_validator("reference_editable_properties")
    @classmethod
    def _non_empty_whitelist(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        if not value:
            raise ValueError("At least one editable reference property is required")
        return tuple(dict.fromkeys(value))

    @field_validator("save_blocking_codes", mode="before")
    @classmethod
    def _split_codes(cls, value: Any) -> Any:
        if isinstance(value, str):
            return frozenset(code.strip() for code in value.split(",") if code.strip())
        return value

    @classmethod
    def from_env(cls) -> "WorkflowGraphConfig":
        """Build a config from the environment.

        Equivalent to ``WorkflowGraphConfig()``; kept as the explicit entry
        point for callers that install the result with ``set_config``.

        Raises:
            ValueError: If a variable holds a value of the wrong shape
        """
        config = cls()
        logger.debug(f"Loaded configuration from environment (model version {config.model_version})")
        return config


_config: Optional[WorkflowGraphConfig] = None


def get_config() -> WorkflowGraphConfig:
    """Return the process default config, creating it on first use."""
    global _config
    if _config is None:
        _config = WorkflowGraphConfig()
    return _config


def set_config(config: Optional[WorkflowGraphConfig]) -> None:
    """Replace the process default config. Pass None to restore defaults."""
    global _config
    _config = config

"""
Cluster topology and runtime settings.

This module provides:
- Topology/Servers: Pydantic models for the cluster topology file
- load_topology(): YAML loader with validation
- Settings: Environment-based runtime configuration (EZ_RKE_ prefix)

Example topology file:

    ```yaml
    servers:
      control:
        - cp-1.example.internal
        - cp-2.example.internal
      worker:
        - worker-1.example.internal
      vip: 10.0.0.100
    ```
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_settings import BaseSettings

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "WARN", "WARNING", "ERROR")


class TopologyError(Exception):
    """
    Raised when the topology file cannot be read or validated.

    Attributes:
        path: The topology file that failed to load
        reason: Human-readable description of the failure
    """

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid topology file {path}: {reason}")


class Servers(BaseModel):
    """
    Node names grouped by role.

    Attributes:
        control: Control plane node names, in declared order
        worker: Worker node names, in declared order
        vip: Optional virtual IP fronting the control plane
    """

    model_config = ConfigDict(frozen=True)

    control: tuple[str, ...]
    worker: tuple[str, ...]
    vip: str | None = None


class Topology(BaseModel):
    """Immutable cluster topology, loaded once at startup."""

    model_config = ConfigDict(frozen=True)

    servers: Servers

    @property
    def control(self) -> tuple[str, ...]:
        return self.servers.control

    @property
    def worker(self) -> tuple[str, ...]:
        return self.servers.worker

    @property
    def vip(self) -> str | None:
        return self.servers.vip


def load_topology(path: Path) -> Topology:
    """
    Load and validate a topology from a YAML file.

    Args:
        path: Path to the topology YAML file

    Returns:
        Validated Topology

    Raises:
        TopologyError: If the file is missing, unreadable, not valid YAML,
            or does not match the topology schema
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise TopologyError(path, e.strerror or str(e)) from e
    except yaml.YAMLError as e:
        raise TopologyError(path, f"malformed YAML ({e})") from e

    try:
        return Topology.model_validate(data)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise TopologyError(path, errors) from e


class Settings(BaseSettings):
    """Dashboard runtime configuration.

    All settings can be overridden via environment variables with
    EZ_RKE_ prefix. For example:
        EZ_RKE_CONFIG_PATH=/etc/ez_rke/cluster.yaml
        EZ_RKE_LOG_LEVEL=DEBUG
    """

    # Topology file
    config_path: Path = Path("ez_rke.yaml")

    # Event multiplexer clock
    tick_rate_ms: int = 250

    # Diagnostics
    log_file: Path | None = Path("ez_rke.log")
    log_level: str = "INFO"
    log_capacity: int = 1000

    model_config = {"env_prefix": "EZ_RKE_"}

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("log_file", mode="before")
    @classmethod
    def _empty_disables_file(cls, value: object) -> object:
        if value == "":
            return None
        return value

    @field_validator("tick_rate_ms", "log_capacity")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def tick_rate(self) -> float:
        """Tick interval in seconds."""
        return self.tick_rate_ms / 1000

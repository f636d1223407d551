"""Server and appearance configuration."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from battlesnake_core import customization
from battlesnake_core.customization import Color
from battlesnake_core.protocol import InfoResponse, ShoutPolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppearanceConfig:
    """What ``GET /`` reports. Unset fields fall back to engine defaults."""

    author: str | None = None
    color: str | None = None
    head: str | None = None
    tail: str | int | None = None
    version: str | None = None

    def __post_init__(self) -> None:
        if self.color is not None:
            Color.parse(self.color)
        if self.head is not None:
            customization.parse(self.head)

    def to_info(self) -> InfoResponse:
        return InfoResponse.build(
            author=self.author,
            color=self.color,
            head=self.head,
            tail=self.tail,
            version=self.version,
        )


@dataclass(frozen=True)
class ServerConfig:
    """Runtime configuration for the snake server.

    Supports JSON serialization so deployments can ship a config file.
    """

    appearance: AppearanceConfig = field(default_factory=AppearanceConfig)

    # Protocol
    shout_policy: str = ShoutPolicy.TRUNCATE.value
    strict_start_turn: bool = False

    # Sessions
    session_idle_timeout_s: float = 300.0
    sweep_interval_s: float = 30.0
    max_terminated_sessions: int = 1024
    shard_count: int = 16

    # Decisions
    latency_margin_ms: int = 50

    # Process
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        ShoutPolicy(self.shout_policy)
        if self.session_idle_timeout_s <= 0:
            raise ValueError("session_idle_timeout_s must be positive.")
        if self.sweep_interval_s <= 0:
            raise ValueError("sweep_interval_s must be positive.")
        if self.max_terminated_sessions < 0:
            raise ValueError("max_terminated_sessions must be >= 0.")
        if self.shard_count < 1:
            raise ValueError("shard_count must be at least 1.")
        if self.latency_margin_ms < 0:
            raise ValueError("latency_margin_ms must be >= 0.")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535.")

    @property
    def shout(self) -> ShoutPolicy:
        return ShoutPolicy(self.shout_policy)

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str | Path) -> None:
        """Write config to a JSON file."""
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Config saved to %s", p)

    @classmethod
    def from_dict(cls, raw: dict) -> ServerConfig:
        data = dict(raw)
        data["appearance"] = AppearanceConfig(**data.get("appearance", {}))
        return cls(**data)

    @classmethod
    def load(cls, path: str | Path) -> ServerConfig:
        """Load config from a JSON file."""
        return cls.from_dict(json.loads(Path(path).read_text()))

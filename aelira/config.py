"""Server configuration loaded from TOML."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class ConfigError(Exception):
    """Raised when the configuration cannot be read or is invalid."""


@dataclass
class ServerConfig:
    host: str
    port: int
    password: str | None = None


@dataclass
class ClusterConfig:
    workers: int | None = None


@dataclass
class Config:
    server: ServerConfig
    cluster: ClusterConfig | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        if not isinstance(data, dict):
            raise ConfigError("configuration must be a table")
        server = data.get("server")
        if not isinstance(server, dict):
            raise ConfigError("missing table `server`")

        host = server.get("host")
        if not isinstance(host, str):
            raise ConfigError("`server.host` must be a string")
        port = server.get("port")
        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= 0xFFFF:
            raise ConfigError("`server.port` must be an integer between 0 and 65535")
        password = server.get("password")
        if password is not None and not isinstance(password, str):
            raise ConfigError("`server.password` must be a string")

        cluster = None
        if "cluster" in data:
            table = data["cluster"]
            if not isinstance(table, dict):
                raise ConfigError("`cluster` must be a table")
            workers = table.get("workers")
            if workers is not None and (
                isinstance(workers, bool) or not isinstance(workers, int) or workers < 0
            ):
                raise ConfigError("`cluster.workers` must be a non-negative integer")
            cluster = ClusterConfig(workers=workers)

        return cls(server=ServerConfig(host=host, port=port, password=password), cluster=cluster)

    @classmethod
    def from_toml(cls, text: str) -> Config:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"invalid TOML: {exc}") from exc
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: str | os.PathLike[str] = "config.toml") -> Config:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read {path}: {exc}") from exc
        return cls.from_toml(text)

    def worker_count(self) -> int:
        """Configured workers, or the CPU count when unset or zero."""
        if self.cluster is not None and self.cluster.workers:
            return self.cluster.workers
        return os.cpu_count() or 1
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from distprimes.partition import U64_MAX

StrategyName = Literal["threads", "mpi", "tcp", "single"]

DEFAULT_LIMIT = 10_000_000
DEFAULT_WORKERS = 4
DEFAULT_MASTER_ADDR = "127.0.0.1:7878"


def parse_address(text: str) -> tuple[str, int]:
    """Split 'host:port' into (host, port)."""
    host, sep, port = text.strip().rpartition(":")
    if not sep or not host:
        raise ValueError(f"address must look like host:port, got {text!r}")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"port must be an integer, got {port!r}") from None
    if not 0 <= port_num <= 65535:
        raise ValueError(f"port out of range: {port_num}")
    return host, port_num


class ClusterConfig(BaseModel):
    # Everything the orchestrator and the socket worker need for one run.
    model_config = ConfigDict(extra="forbid")

    limit: int = Field(default=DEFAULT_LIMIT, ge=0, le=U64_MAX)
    workers: int = Field(default=DEFAULT_WORKERS, ge=1)
    # tried in order, single-node is always appended as the last resort
    strategies: list[StrategyName] = Field(default_factory=lambda: ["threads"], min_length=1)
    master_addr: str = DEFAULT_MASTER_ADDR
    worker: bool = False
    accept_timeout: float | None = Field(default=None, gt=0)
    io_timeout: float | None = Field(default=None, gt=0)
    keep_primes: bool = False
    csv: bool = False
    verbose: bool = False
    show: int = Field(default=0, ge=0)

    @field_validator("master_addr")
    @classmethod
    def _check_master_addr(cls, value: str) -> str:
        parse_address(value)
        return value.strip()

    @property
    def address(self) -> tuple[str, int]:
        return parse_address(self.master_addr)

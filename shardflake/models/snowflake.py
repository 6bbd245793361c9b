from datetime import datetime, timedelta
from typing import Optional
from pydantic import BaseModel, ConfigDict

from shardflake.core.const import EPOCH_DATETIME, EPOCH_MS


class GeneratorConfig(BaseModel):
    """Validated generator configuration, fixed for the generator's lifetime."""

    model_config = ConfigDict(frozen=True)

    generator_id: Optional[int] = None
    shard_count: int = 1
    max_shard_count: int
    shard_id_mask: int

    @property
    def use_generator_id(self) -> bool:
        return self.generator_id is not None

    def __repr__(self):
        return (f"<GeneratorConfig(generator_id={self.generator_id}, shard_count={self.shard_count}, "
                f"max_shard_count={self.max_shard_count})>")


class GeneratorState:
    """Per-instance sequence and shard counters, mutated on every call."""

    def __init__(self):
        self.current_shard_id = 0
        self.auto_increment = 0
        self.last_epoch_time = None

    def __repr__(self):
        return (f"<GeneratorState(current_shard_id={self.current_shard_id}, "
                f"auto_increment={self.auto_increment}, last_epoch_time={self.last_epoch_time})>")


class GeneratorStats(BaseModel):
    """Counters for the silent wraparounds of a generator instance."""

    generated: int = 0
    sequence_wraps: int = 0
    shard_wraps: int = 0
    clock_regressions: int = 0

    def to_dict(self):
        return self.model_dump()


class SnowflakeParts(BaseModel):
    """Fields decoded from a 64-bit identifier."""

    model_config = ConfigDict(frozen=True)

    value: int
    elapsed_ms: int
    sequence: int
    generator_id: Optional[int] = None
    shard_id: int

    @property
    def timestamp_ms(self) -> int:
        """Epoch-adjusted timestamp in Unix milliseconds (still offset-shifted)."""
        return self.elapsed_ms + EPOCH_MS

    @property
    def created_at(self) -> datetime:
        """Timestamp as an aware datetime; carries the generator's local offset shift."""
        return EPOCH_DATETIME + timedelta(milliseconds=self.elapsed_ms)

    def to_dict(self):
        return {
            "value": self.value,
            "elapsed_ms": self.elapsed_ms,
            "sequence": self.sequence,
            "generator_id": self.generator_id,
            "shard_id": self.shard_id,
        }

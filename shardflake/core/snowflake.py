#!/usr/bin/env python3
"""
Snowflake ID generator for uncoordinated, shard-aware unique ID generation.
"""

from numbers import Integral
from typing import Any, Callable, Dict, Optional, Union

from loguru import logger

from shardflake.core.clock import EpochClock
from shardflake.core.config import get_config
from shardflake.core.const import (
    DEFAULT_SHARD_COUNT,
    GENERATOR_ID_MASK,
    GENERATOR_ID_SHIFT,
    MAX_AUTO_INCREMENT,
    MAX_SHARD_COUNT_WITH_GENERATOR,
    MAX_SHARD_COUNT_WITHOUT_GENERATOR,
    SEQUENCE_MASK,
    SEQUENCE_SHIFT,
    TIMESTAMP_MASK,
    TIMESTAMP_SHIFT,
    UINT64_MASK,
)
from shardflake.core.exceptions import InvalidGeneratorId, InvalidShardCount
from shardflake.core.interfaces import ClockInterface
from shardflake.models.snowflake import GeneratorConfig, GeneratorState, GeneratorStats, SnowflakeParts


def _is_integer(value: Any) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def get_generator_id(generator_id: Any) -> Optional[int]:
    """
    Validate the generator id.

    Only negative ids are rejected; ids above 7 are accepted here and
    masked to their low 3 bits when packed.

    Args:
        generator_id: Generator id or None

    Returns:
        The generator id, or None when no generator id is configured
    """
    if generator_id is None:
        return None
    if not _is_integer(generator_id):
        raise InvalidGeneratorId(generator_id, "not an integer")
    if generator_id < 0:
        raise InvalidGeneratorId(generator_id)
    return int(generator_id)


def get_max_shard_count(use_generator_id: bool) -> int:
    return MAX_SHARD_COUNT_WITH_GENERATOR if use_generator_id else MAX_SHARD_COUNT_WITHOUT_GENERATOR


def get_shard_count(shard_count: Any, max_shard_count: int) -> int:
    """
    Validate the shard count.

    Args:
        shard_count: Shard count or None for the default
        max_shard_count: Upper bound for the configured layout

    Returns:
        The shard count
    """
    if shard_count is None:
        return DEFAULT_SHARD_COUNT
    if not _is_integer(shard_count) or shard_count <= 0 or shard_count > max_shard_count:
        raise InvalidShardCount(shard_count, max_shard_count)
    return int(shard_count)


def build_config(generator_id: Any = None, shard_count: Any = None) -> GeneratorConfig:
    """Validate raw parameters into an immutable GeneratorConfig."""
    generator_id = get_generator_id(generator_id)
    max_shard_count = get_max_shard_count(generator_id is not None)
    shard_count = get_shard_count(shard_count, max_shard_count)
    return GeneratorConfig(
        generator_id=generator_id,
        shard_count=shard_count,
        max_shard_count=max_shard_count,
        shard_id_mask=max_shard_count - 1,  # 0x3FF (10 bits) or 0x1FFF (13 bits)
    )


def pack_id(elapsed: int, sequence: int, shard_id: int,
            generator_id: Optional[int] = None, shard_id_mask: Optional[int] = None) -> int:
    """
    Pack the identifier fields into an unsigned 64-bit integer.

    Layout, MSB to LSB:
    - 41 bits elapsed milliseconds since the custom epoch (bits 23-63)
    - 10 bits sequence (bits 13-22)
    -  3 bits generator id, only when configured (bits 10-12)
    - 10 or 13 bits shard id (bits 0-9 or 0-12)

    Args:
        elapsed: Milliseconds since the custom epoch
        sequence: Per-millisecond sequence value
        shard_id: Shard id
        generator_id: Generator id, None to use the 13-bit shard layout
        shard_id_mask: Shard mask, derived from the layout when omitted

    Returns:
        Identifier as int in [0, 2^64)
    """
    if shard_id_mask is None:
        shard_id_mask = get_max_shard_count(generator_id is not None) - 1

    value = (elapsed << TIMESTAMP_SHIFT) | ((sequence & SEQUENCE_MASK) << SEQUENCE_SHIFT)
    if generator_id is not None:
        value |= (generator_id & GENERATOR_ID_MASK) << GENERATOR_ID_SHIFT
    value |= shard_id & shard_id_mask

    # Time bits past 64 are dropped
    return value & UINT64_MASK


def decode_id(value: Union[int, str], with_generator_id: bool = False) -> SnowflakeParts:
    """
    Decode an identifier into its fields.

    The layout is not self-describing: the caller must know whether the
    issuing generator had a generator id configured.

    Args:
        value: Identifier as int or decimal string
        with_generator_id: Whether bits 10-12 hold a generator id

    Returns:
        Decoded fields
    """
    if isinstance(value, str):
        value = int(value, 10)
    if not 0 <= value <= UINT64_MASK:
        raise ValueError(f"Identifier out of unsigned 64-bit range: {value}")

    max_shard_count = get_max_shard_count(with_generator_id)
    return SnowflakeParts(
        value=value,
        elapsed_ms=(value >> TIMESTAMP_SHIFT) & TIMESTAMP_MASK,
        sequence=(value >> SEQUENCE_SHIFT) & SEQUENCE_MASK,
        generator_id=(value >> GENERATOR_ID_SHIFT) & GENERATOR_ID_MASK if with_generator_id else None,
        shard_id=value & (max_shard_count - 1),
    )


class IdGenerator:
    """
    Snowflake-style ID generator with a rotating shard id.

    Every call reads the clock, resets or advances the per-millisecond
    sequence, advances the shard id by one (regardless of time) and packs
    the result into a 64-bit identifier.

    Calls never raise. Sequence overflow within a millisecond and clock
    regressions are not corrected; they only show up in ``stats``.

    Not thread-safe: state is mutated without locking, so share one
    instance per thread or serialize access externally.
    """

    def __init__(self, generator_id: Optional[int] = None, shard_count: Optional[int] = None,
                 clock: Optional[Union[ClockInterface, Callable[[], int]]] = None):
        """
        Initialize the generator.

        Args:
            generator_id: Generator id (0-7 effective), None for no generator id
            shard_count: Number of shards to rotate through (default 1)
            clock: Source of elapsed milliseconds since the custom epoch
        """
        self.config = build_config(generator_id, shard_count)
        self.clock = clock if clock is not None else EpochClock()
        self._state = GeneratorState()
        self._stats = GeneratorStats()

        logger.info(
            f"ID generator ready: generator_id={self.config.generator_id}, "
            f"shard_count={self.config.shard_count}, max_shard_count={self.config.max_shard_count}"
        )

    @classmethod
    def from_config(cls, config: Dict[str, Any], clock=None) -> "IdGenerator":
        """Create a generator from a merged configuration dictionary."""
        generator_config = config.get("generator") or {}
        if clock is None:
            clock = EpochClock((config.get("clock") or {}).get("timezone"))
        return cls(
            generator_id=generator_config.get("generator_id"),
            shard_count=generator_config.get("shard_count"),
            clock=clock,
        )

    @property
    def stats(self) -> GeneratorStats:
        """Snapshot of the wraparound counters."""
        return self._stats.model_copy()

    def next_id(self) -> int:
        """
        Generate the next identifier.

        Returns:
            Identifier as int
        """
        state = self._state
        config = self.config
        elapsed = self.clock()

        # Reset the sequence on every millisecond change
        if state.last_epoch_time != elapsed:
            if state.last_epoch_time is not None and elapsed < state.last_epoch_time:
                self._stats.clock_regressions += 1
                logger.warning(f"Clock moved backwards: {state.last_epoch_time} -> {elapsed}")
            state.auto_increment = 0
            state.last_epoch_time = elapsed
        elif state.auto_increment == 0:
            # 1024 ids already issued in this millisecond
            self._stats.sequence_wraps += 1
            logger.debug(f"Sequence exhausted in millisecond {elapsed}; reusing sequence 0")

        sequence = state.auto_increment
        state.auto_increment = (state.auto_increment + 1) % MAX_AUTO_INCREMENT

        shard_id = state.current_shard_id
        state.current_shard_id = (state.current_shard_id + 1) % config.shard_count
        if state.current_shard_id == 0 and config.shard_count > 1:
            self._stats.shard_wraps += 1

        self._stats.generated += 1

        return pack_id(elapsed, sequence, shard_id, config.generator_id, config.shard_id_mask)

    def next_id_str(self) -> str:
        """
        Generate the next identifier as an unsigned decimal string.

        Returns:
            Identifier as string
        """
        return str(self.next_id())

    def __call__(self) -> str:
        return self.next_id_str()

    def decode(self, value: Union[int, str]) -> SnowflakeParts:
        """Decode an identifier using this generator's layout."""
        return decode_id(value, self.config.use_generator_id)

    def __repr__(self):
        return f"<IdGenerator(generator_id={self.config.generator_id}, shard_count={self.config.shard_count})>"


_default_generator: Optional[IdGenerator] = None


def get_default_generator() -> IdGenerator:
    """Get the process-wide generator built from the loaded configuration."""
    global _default_generator
    if _default_generator is None:
        _default_generator = IdGenerator.from_config(get_config())
    return _default_generator


def generate_id() -> str:
    """
    Generate a new ID with the default generator.

    Returns:
        Snowflake ID as string
    """
    return get_default_generator().next_id_str()

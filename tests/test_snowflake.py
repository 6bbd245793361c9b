"""
Tests for the ID generator and the bit packer.
"""

import re

import pytest

from shardflake import (
    IdGenerator,
    InvalidConfiguration,
    InvalidGeneratorId,
    InvalidShardCount,
    decode_id,
    pack_id
)
from shardflake.core.const import EPOCH_MS, UINT64_MASK


class TestConstruction:
    """Configuration validation at construction time."""

    def test_negative_generator_id_is_rejected(self, clock):
        with pytest.raises(InvalidGeneratorId) as exc_info:
            IdGenerator(generator_id=-1, clock=clock)
        assert exc_info.value.error_code == "INVALID_GENERATOR_ID"
        assert "negative" in str(exc_info.value)

    def test_non_integer_generator_id_is_rejected(self, clock):
        with pytest.raises(InvalidGeneratorId):
            IdGenerator(generator_id="3", clock=clock)

    @pytest.mark.parametrize("shard_count", [0, -4, 1025, "4", 2.5, True])
    def test_invalid_shard_count_with_generator_id(self, clock, shard_count):
        with pytest.raises(InvalidShardCount) as exc_info:
            IdGenerator(generator_id=1, shard_count=shard_count, clock=clock)
        assert exc_info.value.max_shard_count == 1024
        assert "1024" in str(exc_info.value)
        assert f"[{shard_count}]" in str(exc_info.value)

    def test_shard_count_limit_without_generator_id(self, clock):
        generator = IdGenerator(shard_count=8192, clock=clock)
        assert generator.config.max_shard_count == 8192
        assert generator.config.shard_id_mask == 0x1FFF

        with pytest.raises(InvalidShardCount) as exc_info:
            IdGenerator(shard_count=8193, clock=clock)
        assert exc_info.value.max_shard_count == 8192

    def test_shard_count_limit_with_generator_id(self, clock):
        generator = IdGenerator(generator_id=0, shard_count=1024, clock=clock)
        assert generator.config.max_shard_count == 1024
        assert generator.config.shard_id_mask == 0x3FF

    def test_errors_share_configuration_base(self, clock):
        with pytest.raises(InvalidConfiguration):
            IdGenerator(shard_count=0, clock=clock)
        with pytest.raises(InvalidConfiguration):
            IdGenerator(generator_id=-5, clock=clock)

    def test_defaults(self):
        generator = IdGenerator()
        assert generator.config.generator_id is None
        assert generator.config.shard_count == 1
        assert generator.config.use_generator_id is False

    def test_config_is_immutable(self, clock):
        generator = IdGenerator(generator_id=2, clock=clock)
        with pytest.raises(Exception):
            generator.config.shard_count = 5


class TestGeneration:
    """Sequence and shard behavior of successive calls."""

    def test_returns_unsigned_decimal_string(self):
        value = IdGenerator()()
        assert re.fullmatch(r"[1-9][0-9]*", value)
        assert 0 < int(value) <= UINT64_MASK

    def test_four_calls_in_one_millisecond(self, clock):
        generator = IdGenerator(generator_id=5, shard_count=4, clock=clock)

        parts = [generator.decode(generator()) for _ in range(4)]

        assert [p.shard_id for p in parts] == [0, 1, 2, 3]
        assert [p.sequence for p in parts] == [0, 1, 2, 3]
        assert all(p.generator_id == 5 for p in parts)
        assert all(p.elapsed_ms == clock.elapsed for p in parts)

    def test_sequence_resets_on_millisecond_change(self, clock):
        generator = IdGenerator(clock=clock)

        first = [generator.decode(generator.next_id()).sequence for _ in range(3)]
        clock.advance()
        second = [generator.decode(generator.next_id()).sequence for _ in range(2)]

        assert first == [0, 1, 2]
        assert second == [0, 1]

    def test_sequence_wraps_after_1024_calls(self, clock):
        generator = IdGenerator(generator_id=1, clock=clock)

        ids = [generator.next_id() for _ in range(1025)]

        assert generator.decode(ids[1023]).sequence == 1023
        assert generator.decode(ids[1024]).sequence == 0
        # Same millisecond, same shard, same generator: documented collision
        assert ids[1024] == ids[0]
        assert generator.stats.sequence_wraps == 1

    def test_full_millisecond_without_reuse_is_not_a_wrap(self, clock):
        generator = IdGenerator(clock=clock)

        for _ in range(1024):
            generator.next_id()
        clock.advance()
        value = generator.next_id()

        assert generator.decode(value).sequence == 0
        assert generator.stats.sequence_wraps == 0
        assert generator.stats.generated == 1025

    def test_shard_rotation_ignores_millisecond_boundaries(self, clock):
        generator = IdGenerator(shard_count=3, clock=clock)

        shards = []
        for step in range(7):
            if step % 2:
                clock.advance()
            shards.append(generator.decode(generator.next_id()).shard_id)

        assert shards == [0, 1, 2, 0, 1, 2, 0]
        assert generator.stats.shard_wraps == 2

    def test_elapsed_non_decreasing_with_monotonic_clock(self, clock):
        generator = IdGenerator(generator_id=3, shard_count=16, clock=clock)

        ids = []
        for step in range(50):
            clock.advance(step % 3)
            ids.append(generator.next_id())

        elapsed = [generator.decode(value).elapsed_ms for value in ids]
        assert elapsed == sorted(elapsed)
        assert ids == sorted(ids)

    def test_generator_id_above_seven_is_masked(self, clock):
        masked = IdGenerator(generator_id=8, clock=clock)
        zero = IdGenerator(generator_id=0, clock=clock)

        assert masked.next_id() == zero.next_id()
        assert masked.config.generator_id == 8

    def test_clock_regression_does_not_raise(self, clock):
        generator = IdGenerator(clock=clock)
        generator.next_id()
        generator.next_id()

        clock.advance(-5)
        value = generator.next_id()

        assert generator.decode(value).sequence == 0
        assert generator.decode(value).elapsed_ms == clock.elapsed
        assert generator.stats.clock_regressions == 1

    def test_instances_do_not_share_state(self, clock):
        first = IdGenerator(shard_count=4, clock=clock)
        second = IdGenerator(shard_count=4, clock=clock)

        first.next_id()
        first.next_id()
        parts = second.decode(second.next_id())

        assert parts.sequence == 0
        assert parts.shard_id == 0

    def test_stats_snapshot(self, clock):
        generator = IdGenerator(clock=clock)
        snapshot = generator.stats
        generator.next_id()

        assert snapshot.generated == 0
        assert generator.stats.generated == 1
        assert generator.stats.to_dict()["generated"] == 1

    def test_plain_callable_clock(self):
        generator = IdGenerator(generator_id=2, clock=lambda: 12345)
        parts = generator.decode(generator())

        assert parts.elapsed_ms == 12345
        assert parts.timestamp_ms == 12345 + EPOCH_MS


class TestPackAndDecode:
    """Bit layout of packed identifiers."""

    def test_layout_with_generator_id(self):
        value = pack_id(elapsed=1, sequence=1, shard_id=1, generator_id=1)
        assert value == (1 << 23) | (1 << 13) | (1 << 10) | 1

    def test_layout_without_generator_id(self):
        value = pack_id(elapsed=0, sequence=0, shard_id=0x1FFF)
        assert value == 0x1FFF
        assert decode_id(value).shard_id == 0x1FFF

    @pytest.mark.parametrize("elapsed, sequence, generator_id, shard_id", [
        (0, 0, 0, 0),
        ((1 << 41) - 1, 1023, 7, 1023),
        (378_000_000_000, 517, 3, 42),
    ])
    def test_round_trip_with_generator_id(self, elapsed, sequence, generator_id, shard_id):
        value = pack_id(elapsed, sequence, shard_id, generator_id)
        parts = decode_id(value, with_generator_id=True)

        assert (parts.elapsed_ms, parts.sequence, parts.generator_id, parts.shard_id) == \
            (elapsed, sequence, generator_id, shard_id)

    def test_round_trip_without_generator_id(self):
        value = pack_id(378_000_000_000, 99, 8191)
        parts = decode_id(str(value))

        assert parts.generator_id is None
        assert (parts.elapsed_ms, parts.sequence, parts.shard_id) == (378_000_000_000, 99, 8191)

    def test_maximum_value_uses_all_64_bits(self):
        value = pack_id((1 << 41) - 1, 1023, 1023, 7)
        assert value == UINT64_MASK
        assert str(value) == "18446744073709551615"

    def test_time_beyond_41_bits_is_dropped(self):
        assert pack_id(1 << 41, 0, 0) == 0

    def test_decode_rejects_out_of_range(self):
        with pytest.raises(ValueError):
            decode_id(-1)
        with pytest.raises(ValueError):
            decode_id(UINT64_MASK + 1)

    def test_created_at(self):
        parts = decode_id(pack_id(86_400_000, 0, 0))
        assert parts.created_at.isoformat() == "2014-01-02T00:00:00+00:00"

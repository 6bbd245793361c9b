"""
Constants module for the shardflake ID generator.
"""

from datetime import datetime, timezone


# Custom epoch: 2014-01-01T00:00:00.000 UTC
EPOCH_DATETIME = datetime(2014, 1, 1, tzinfo=timezone.utc)
EPOCH_MS = 1388534400000

# Field widths (bits)
TIMESTAMP_BITS = 41
SEQUENCE_BITS = 10
GENERATOR_ID_BITS = 3
SHARD_ID_BITS_WITH_GENERATOR = 10
SHARD_ID_BITS_WITHOUT_GENERATOR = 13

# Field positions
TIMESTAMP_SHIFT = 23
SEQUENCE_SHIFT = 13
GENERATOR_ID_SHIFT = 10

# Masks
TIMESTAMP_MASK = (1 << TIMESTAMP_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1
GENERATOR_ID_MASK = (1 << GENERATOR_ID_BITS) - 1
UINT64_MASK = (1 << 64) - 1

# 2^10 ids per generator/shard per millisecond
MAX_AUTO_INCREMENT = 1 << SEQUENCE_BITS

# Trading 3 bits of shard space for 3 bits of generator space
MAX_SHARD_COUNT_WITH_GENERATOR = 1 << SHARD_ID_BITS_WITH_GENERATOR
MAX_SHARD_COUNT_WITHOUT_GENERATOR = 1 << SHARD_ID_BITS_WITHOUT_GENERATOR

DEFAULT_SHARD_COUNT = 1

"""
shardflake: shard-aware Snowflake-style ID generator.
"""

__version__ = "0.1.0"

from shardflake.core.exceptions import (
    ShardflakeError,
    InvalidConfiguration,
    InvalidGeneratorId,
    InvalidShardCount
)
from shardflake.core.snowflake import IdGenerator, decode_id, generate_id, pack_id

__all__ = [
    'IdGenerator',
    'decode_id',
    'generate_id',
    'pack_id',
    'ShardflakeError',
    'InvalidConfiguration',
    'InvalidGeneratorId',
    'InvalidShardCount'
]

"""
Models module for the shardflake ID generator.
"""

from shardflake.models.snowflake import (
    GeneratorConfig,
    GeneratorState,
    GeneratorStats,
    SnowflakeParts
)

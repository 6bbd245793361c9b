"""Custom exceptions for shardflake with actionable error messages."""

class ShardflakeError(Exception):
    """Base exception for shardflake."""
    def __init__(self, message: str, remedy: str = None, error_code: str = None):
        self.message = message
        self.remedy = remedy or "Check the generator configuration and try again."
        self.error_code = error_code or "GENERAL_ERROR"
        super().__init__(self.message)

class InvalidConfiguration(ShardflakeError):
    """Generator or settings configuration errors."""
    def __init__(self, message: str, field: str = None):
        remedies = {
            "generator_id": "Use a generator id between 0 and 7, or leave it unset.",
            "shard_count": "Use a shard count between 1 and the maximum for this layout.",
            "settings": "Check SHARDFLAKE_* environment variables and the YAML settings file."
        }

        remedy = remedies.get(field, "Check the generator configuration.")
        error_code = f"INVALID_{field.upper()}" if field else "INVALID_CONFIGURATION"
        super().__init__(message, remedy, error_code)
        self.field = field

class InvalidGeneratorId(InvalidConfiguration):
    """Generator id supplied as a negative number, or not as an integer.

    Only negative ids are out of range; anything that is not an integer is
    also rejected here rather than being treated as "no generator id".
    """
    def __init__(self, generator_id, reason: str = "negative"):
        super().__init__(f"Invalid generator id [{generator_id}] ({reason})", "generator_id")
        self.generator_id = generator_id

class InvalidShardCount(InvalidConfiguration):
    """Shard count of the wrong type or outside [1, max_shard_count]."""
    def __init__(self, shard_count, max_shard_count: int):
        super().__init__(
            f"Invalid shardCount [{shard_count}]! It must be a value between 1 and {max_shard_count}",
            "shard_count"
        )
        self.shard_count = shard_count
        self.max_shard_count = max_shard_count

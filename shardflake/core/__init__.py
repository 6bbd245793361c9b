"""
Core module for the shardflake ID generator.
"""

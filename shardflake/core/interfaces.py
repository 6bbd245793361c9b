#!/usr/bin/env python3
"""
Interfaces for the shardflake ID generator.
"""

from abc import ABC, abstractmethod


class ClockInterface(ABC):
    """Interface for clock sources feeding the bit packer."""

    @abstractmethod
    def elapsed_ms(self) -> int:
        """Milliseconds elapsed since the custom epoch."""
        pass

    def __call__(self) -> int:
        return self.elapsed_ms()

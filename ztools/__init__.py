"""Sharded locked maps, FNV hashing, snowflake IDs, timing-wheel timers and a rotating log writer."""

__version__ = "0.1.0"
"""Core signal logic: indicators, models, classification and history.

This package contains pure business logic with no I/O dependencies
(no network, Redis, or filesystem access). The asyncio engine and its
collaborators live in signal_monitor/.
"""

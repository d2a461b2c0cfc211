"""Structured logging module for Storage Heater Scheduler."""

from .unified_logger import HeaterLogger, get_logger

__all__ = ["HeaterLogger", "get_logger"]

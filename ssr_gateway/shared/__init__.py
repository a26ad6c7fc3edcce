"""Shared utilities for the SSR content gateway."""

from .config import Settings, get_config
from .utils import load_object

__all__ = ['Settings', 'get_config', 'load_object']

"""Tabulous utilities module.

This module contains shared utilities used across the tabulous package.

Components:
- exceptions: Custom exception classes
- settings: Configuration and settings management
"""

from tabulous.utils.exceptions import *  # noqa: F401, F403
from tabulous.utils.settings import *  # noqa: F401, F403

"""Utility modules for PolyTrans.

This package provides the logger factory and string helpers shared by every layer.
"""

from polytrans.utils.logger_utils import LoggerUtils
from polytrans.utils.string_utils import StringUtils

__all__: list[str] = ["LoggerUtils", "StringUtils"]

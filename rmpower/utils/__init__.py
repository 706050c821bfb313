"""
RMPower utilities package.
Internal utilities - not part of public API.
"""

from . import formatters, validators

"""
Runtime support: error model and configuration.

``config`` is imported explicitly by its users since it depends on the
address types.
"""

from .errors import *

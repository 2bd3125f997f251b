"""
Computer players: legal move enumeration, decision policies and personalities.
"""

from .policy import decide

__all__ = ["decide"]

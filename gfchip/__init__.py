"""Chip inventory, stat calculation and layout solving for heavy-ordnance squads."""

__version__ = "2.0.3"
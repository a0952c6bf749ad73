"""
Cricket Umpire Spell Counter

Tracks a single bowling spell ball by ball: balls in the current over,
completed overs, wickets, and the delivery sequence of the over, with
configurable re-bowl rules for wides and no-balls and multi-step undo.
"""

__version__ = "0.1.0"

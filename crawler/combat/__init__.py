"""
Combat system module for the dungeon crawler rules engine.

This module handles all combat mechanics including damage calculation, the
timer-driven combat engine, enemy intents and turn-based fight resolution.
"""

"""
Stats system module for the dungeon crawler rules engine.

This module aggregates the player's stats from named contribution sources
(base, equipment, buffs) and projects them into combat-ready snapshots.
"""

"""
Loot system module for the dungeon crawler rules engine.

This module rolls gold and equipment rewards from tier, rarity and affix
tables, and scores generated items with a power level.
"""

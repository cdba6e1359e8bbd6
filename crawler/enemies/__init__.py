"""
Enemy system module for the dungeon crawler rules engine.

This module contains the enemy tables loaded from data files and the
generator that turns them into tier-weighted encounters.
"""

"""
Items system module for the dungeon crawler rules engine.

This module contains the base item definitions loaded from data files, the
affix definitions rolled onto them, and the generated equipment instances.
"""

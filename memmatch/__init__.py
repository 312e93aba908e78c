"""
Memmatch - Memory Matching Game Engine

Flip two cards, match pairs. The engine deals a shuffled deck of pairs
and provides:
- State management
- Selection and match resolution
- Delayed flip-back of non-matching pairs, safe across resets
- Progress reporting for a progress bar
"""

__version__ = "0.1.0"

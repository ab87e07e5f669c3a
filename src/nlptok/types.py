"""
Core types for tokenization.
"""

from typing import TypeAlias

TokenId: TypeAlias = int
Position: TypeAlias = int
Score: TypeAlias = float
Span: TypeAlias = tuple[int, int]

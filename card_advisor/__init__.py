"""
Trading-card investment advice engine.

Scores candidate cards from market signals, allocates an investment
budget across the best opportunities and assesses the resulting risk.
"""

__version__ = "1.0.0"

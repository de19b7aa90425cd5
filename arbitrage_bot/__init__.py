"""
Round-trip arbitrage bot: Jupiter quotes in, atomic Jito bundles out.
"""
__version__ = "0.1.0"

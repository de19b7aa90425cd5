"""
Utility functions for the arbitrage bot.
"""
import sys
from typing import Dict


def get_terminal_colors() -> Dict[str, str]:
    """
    Get ANSI color codes for terminal output.
    
    Returns empty strings if output is not a TTY (e.g., redirected to file),
    so log files stay free of escape codes.
    
    Returns:
        Dictionary with color codes: GREEN, CYAN, YELLOW, RED, DIM, RESET
    """
    use_color = sys.stdout.isatty()
    return {
        'GREEN': '\033[92m' if use_color else '',   # Amounts and counts
        'CYAN': '\033[96m' if use_color else '',    # Addresses, mints, bundle ids
        'YELLOW': '\033[93m' if use_color else '',  # Profit delta, tip, thresholds
        'RED': '\033[91m' if use_color else '',     # Errors and negative deltas
        'DIM': '\033[90m' if use_color else '',     # Low-importance service messages
        'RESET': '\033[0m' if use_color else ''
    }


def short_address(address: str, width: int = 8) -> str:
    """Shorten a base58 address for log lines: 'So111111...'."""
    address = str(address)
    if len(address) <= width:
        return address
    return f"{address[:width]}..."


def format_lamports(lamports: int) -> str:
    """Render a lamport amount as SOL with 9 decimals."""
    sign = '-' if lamports < 0 else ''
    whole, frac = divmod(abs(lamports), 1_000_000_000)
    return f"{sign}{whole}.{frac:09d} SOL"

"""
Functional modules for JupiterClient

Provides high-level operations:
- WalletModule: Balance queries, address validation
- SwapModule: Token swaps in display units via Jupiter
"""

from .wallet import WalletModule
from .swap import SwapModule

__all__ = [
    "WalletModule",
    "SwapModule",
]

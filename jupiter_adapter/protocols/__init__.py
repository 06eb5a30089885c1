"""
Protocol adapters

Jupiter is the only quote source; its adapter builds on the shared infra
layer (RPC, signer, transaction manager).
"""

from .jupiter import JupiterAdapter, JupiterAPI

__all__ = [
    "JupiterAdapter",
    "JupiterAPI",
]

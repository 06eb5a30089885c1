"""
Jupiter swap aggregator

- api: async REST client (quotes, swap transactions)
- quote_math: pure quote arithmetic and validation
- routes: route plan analysis
- adapter: end-to-end swap orchestration
"""

from .api import JupiterAPI
from .adapter import JupiterAdapter, QuoteEvaluation

__all__ = [
    "JupiterAPI",
    "JupiterAdapter",
    "QuoteEvaluation",
]

"""AMM pricing implementations."""

from cpamm.amm.base import AMM, SwapResult
from cpamm.amm.constant_product import ConstantProduct, constant_product, swap

__all__ = [
    # Base classes
    "AMM",
    "SwapResult",
    # Constant product
    "ConstantProduct",
    "constant_product",
    "swap",
]

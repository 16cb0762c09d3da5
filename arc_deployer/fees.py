"""
Fee policy for wiring transactions.
"""
import logging
from decimal import Decimal
from typing import Optional, Union

from web3 import Web3

from .models import FeeOverride, FeeSuggestion

logger = logging.getLogger(__name__)

# Fallback tip used when the node does not implement eth_maxPriorityFeePerGas
DEFAULT_PRIORITY_FEE_WEI = Web3.to_wei(1, "gwei")


def compute_override(
    explicit_gwei: Optional[Union[int, float, str, Decimal]] = None,
    suggested: Optional[FeeSuggestion] = None,
) -> Optional[FeeOverride]:
    """
    Compute the fee override attached to every wiring call.

    Args:
        explicit_gwei: Operator supplied fee in gwei. When set, the endpoint
            suggestion is ignored and the tip is half of it.
        suggested: Fee data suggested by the endpoint

    Returns:
        FeeOverride in wei, or None to let the endpoint pick its defaults
    """
    if explicit_gwei is not None and explicit_gwei != "":
        max_fee = Web3.to_wei(Decimal(str(explicit_gwei)), "gwei")
        return FeeOverride(
            max_fee_per_gas=max_fee,
            max_priority_fee_per_gas=max_fee // 2,
        )

    if suggested is None:
        return None
    if not suggested.max_fee_per_gas or not suggested.max_priority_fee_per_gas:
        return None

    # +50% buffer for fee volatility between estimation and submission
    return FeeOverride(
        max_fee_per_gas=suggested.max_fee_per_gas * 3 // 2,
        max_priority_fee_per_gas=suggested.max_priority_fee_per_gas * 3 // 2,
    )


def fetch_fee_suggestion(w3: Web3) -> Optional[FeeSuggestion]:
    """
    Read EIP-1559 fee data from the endpoint.

    maxFeePerGas is twice the latest base fee plus the tip. Returns None when
    the endpoint cannot be queried or the chain has no base fee.
    """
    try:
        block = w3.eth.get_block("latest")
    except Exception as e:
        logger.warning(f"Could not read latest block for fee data: {e}")
        return None

    base_fee = block.get("baseFeePerGas") if hasattr(block, "get") else None
    if base_fee is None:
        logger.info("Endpoint reports no baseFeePerGas, using network default fees")
        return None

    try:
        priority_fee = w3.eth.max_priority_fee
    except Exception as e:
        logger.debug(f"eth_maxPriorityFeePerGas unavailable ({e}), using 1 gwei tip")
        priority_fee = DEFAULT_PRIORITY_FEE_WEI

    return FeeSuggestion(
        max_fee_per_gas=base_fee * 2 + priority_fee,
        max_priority_fee_per_gas=priority_fee,
    )

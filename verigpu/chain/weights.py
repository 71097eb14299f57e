"""Weight setting for validators."""

import structlog
from bittensor import Subtensor
from bittensor_wallet import Wallet

from verigpu.types import U16_MAX, EligibilityResult, MinerUID, WeightEntry

logger = structlog.get_logger()


def merge_weight_entries(entries: list[WeightEntry]) -> tuple[list[MinerUID], list[int]]:
    """
    Collapse duplicate uids into one u16 weight each for chain submission.

    The allocation engine emits one entry per (miner, category); the chain
    rejects duplicate uids, so a miner serving two GPU categories is summed
    here.

    Args:
        entries: Weight vector from the allocation engine

    Returns:
        Tuple of (uids, weights_u16) ordered by uid
    """
    merged: dict[MinerUID, int] = {}
    for uid, weight in entries:
        merged[uid] = merged.get(uid, 0) + weight

    uids = sorted(merged)
    return uids, [min(merged[uid], U16_MAX) for uid in uids]


def set_weights(
    subtensor: Subtensor,
    wallet: Wallet,
    netuid: int,
    entries: list[WeightEntry],
    wait_for_inclusion: bool = True,
    wait_for_finalization: bool = False,
) -> bool:
    """
    Submit weights to chain.

    Args:
        subtensor: Bittensor subtensor connection
        wallet: Validator's wallet
        netuid: Subnet UID
        entries: Weight vector from the allocation engine
        wait_for_inclusion: Wait for transaction inclusion
        wait_for_finalization: Wait for finalization

    Returns:
        True if weights were set successfully
    """
    uids, weights_u16 = merge_weight_entries(entries)

    if not uids:
        logger.warning("no_weights_to_set")
        return False

    try:
        top_weights = sorted(zip(uids, weights_u16), key=lambda x: x[1], reverse=True)[:5]
        logger.info(
            "setting_weights",
            n_uids=len(uids),
            total=sum(weights_u16),
            top_weights=[(uid, w) for uid, w in top_weights],
        )

        result = subtensor.set_weights(
            wallet=wallet,
            netuid=netuid,
            uids=[int(uid) for uid in uids],
            weights=weights_u16,
            wait_for_inclusion=wait_for_inclusion,
            wait_for_finalization=wait_for_finalization,
        )

        if result.success:
            logger.info("weights_set_successfully")
        else:
            logger.error("weights_set_failed", message=result.message)

        return result.success

    except Exception as e:
        logger.error("weights_set_exception", error=str(e))
        return False


def verify_weight_setting_eligibility(
    subtensor: Subtensor,
    wallet: Wallet,
    netuid: int,
) -> EligibilityResult:
    """
    Check if validator can set weights.

    Args:
        subtensor: Bittensor subtensor connection
        wallet: Validator's wallet
        netuid: Subnet UID

    Returns:
        Tuple of (eligible, reason)
    """
    try:
        # Use neurons() instead of metagraph() to avoid runtime API compatibility issues
        # with certain substrate node versions
        neurons = subtensor.neurons(netuid=netuid)

        if not neurons:
            return EligibilityResult(False, "No neurons found on subnet")

        hotkey = wallet.hotkey.ss58_address
        neuron = next((n for n in neurons if n.hotkey == hotkey), None)

        if neuron is None:
            return EligibilityResult(False, "Hotkey not registered on subnet")

        if not getattr(neuron, "validator_permit", False):
            return EligibilityResult(False, "No validator permit")

        return EligibilityResult(True, "Eligible")

    except Exception as e:
        return EligibilityResult(False, f"Error checking eligibility: {e}")

# mining_model/core/revenue.py
"""
Mining revenue from hashrate share.

BTC/month is proportional to owned_hash / network_hash * blocks_per_month
* (subsidy + fees). Pool fees are applied per site, weighted by each live
tranche's hashrate.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from mining_model.config import settings
from mining_model.core.power_allocation import TrancheAllocation


@dataclass(frozen=True)
class NetworkRevenue:
    hashrate_fraction: float
    btc_mined_gross: float  # subsidy only, before pool fee
    tx_fee_btc: float


@dataclass(frozen=True)
class SiteRevenue:
    hashrate_ths: float
    hashrate_share: float
    btc_gross: float
    tx_fee_btc: float
    pool_fee: float
    btc_after_fee: float


def compute_network_revenue(
    owned_ths: float,
    global_hashrate_eh: float,
    block_reward_btc: float,
    tx_fees_per_block: float,
    blocks_per_month: int | None = None,
) -> NetworkRevenue:
    """Company-wide BTC production before pool fees."""
    if blocks_per_month is None:
        blocks_per_month = settings.BLOCKS_PER_MONTH

    global_ths = global_hashrate_eh * settings.TH_PER_EH
    fraction = owned_ths / global_ths if global_ths > 0 else 0.0

    return NetworkRevenue(
        hashrate_fraction=fraction,
        btc_mined_gross=fraction * block_reward_btc * blocks_per_month,
        tx_fee_btc=fraction * tx_fees_per_block * blocks_per_month,
    )


def weighted_pool_fee(allocations: Iterable[TrancheAllocation]) -> float:
    """Hashrate-weighted pool fee across a site's live tranches."""
    total_ths = 0.0
    weighted = 0.0
    for alloc in allocations:
        total_ths += alloc.hashrate_ths
        weighted += alloc.tranche.pool_fee * alloc.hashrate_ths
    return weighted / total_ths if total_ths > 0 else 0.0


def apportion_site_revenue(
    network: NetworkRevenue,
    total_owned_ths: float,
    site_allocations: list[TrancheAllocation],
) -> SiteRevenue:
    """Give a site its hashrate share of gross and fee BTC, net of pool fee."""
    site_ths = sum(a.hashrate_ths for a in site_allocations)
    share = site_ths / total_owned_ths if total_owned_ths > 0 else 0.0

    btc_gross = network.btc_mined_gross * share
    tx_fee_btc = network.tx_fee_btc * share
    pool_fee = weighted_pool_fee(site_allocations)

    return SiteRevenue(
        hashrate_ths=site_ths,
        hashrate_share=share,
        btc_gross=btc_gross,
        tx_fee_btc=tx_fee_btc,
        pool_fee=pool_fee,
        btc_after_fee=(btc_gross + tx_fee_btc) * (1.0 - pool_fee),
    )

"""
Hardware tier attestation.

Every tier has two requirement generations keyed by stake: the old, higher
collateral bracket with the historical minimums and the new, lower collateral
bracket with raised minimums.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum

import structlog

from nodeauth.config import settings
from nodeauth.services.oracles import HardwareInspector, TierOracle

logger = structlog.get_logger()

GIB = 1024**3


class Tier(str, Enum):
    CUMULUS = "Cumulus"
    NIMBUS = "Nimbus"
    STRATUS = "Stratus"


# Names reported by the network for each tier
TIER_ALIASES = {
    "basic": Tier.CUMULUS,
    "super": Tier.NIMBUS,
    "bamf": Tier.STRATUS,
    "cumulus": Tier.CUMULUS,
    "nimbus": Tier.NIMBUS,
    "stratus": Tier.STRATUS,
}


@dataclass(frozen=True, slots=True)
class HardwareProfile:
    cpu_threads: int
    total_ram_bytes: int

    @property
    def ram_gib(self) -> int:
        return self.total_ram_bytes // GIB


@dataclass(frozen=True, slots=True)
class TierRequirement:
    tier: Tier
    stake_threshold_old: int
    cpu_min_old: int
    ram_min_gib_old: int
    stake_threshold_new: int
    cpu_min_new: int
    ram_min_gib_new: int


@dataclass(frozen=True, slots=True)
class TierCheckResult:
    passed: bool
    reason: str | None = None


TIER_REQUIREMENTS: dict[Tier, TierRequirement] = {
    Tier.STRATUS: TierRequirement(Tier.STRATUS, 100_000, 8, 30, 40_000, 16, 61),
    Tier.NIMBUS: TierRequirement(Tier.NIMBUS, 25_000, 4, 7, 12_500, 8, 30),
    Tier.CUMULUS: TierRequirement(Tier.CUMULUS, 10_000, 2, 3, 1_000, 4, 3),
}


def resolve_tier(name: str) -> Tier | None:
    """Map a tier name reported by the network to a Tier, or None if unknown."""
    if isinstance(name, Tier):
        return name
    return TIER_ALIASES.get(str(name).strip().lower())


def check_tier(
    tier: Tier,
    stake: int,
    profile: HardwareProfile,
    requirements: dict[Tier, TierRequirement] = TIER_REQUIREMENTS,
) -> TierCheckResult:
    """
    Compare a hardware profile against the requirements for a tier and stake.

    The old bracket applies when the stake reaches its threshold, otherwise
    the new one does. CPU threads are checked before RAM, and RAM is compared
    in whole GiB (partial GiB truncated).
    """
    req = requirements[tier]

    if stake >= req.stake_threshold_old:
        label, cpu_min, ram_min = tier.value, req.cpu_min_old, req.ram_min_gib_old
    else:
        label, cpu_min, ram_min = f"new {tier.value}", req.cpu_min_new, req.ram_min_gib_new

    if profile.cpu_threads < cpu_min:
        return TierCheckResult(
            passed=False,
            reason=f"Node Cpu Threads ({profile.cpu_threads}) below {label} requirements",
        )

    if profile.ram_gib < ram_min:
        return TierCheckResult(
            passed=False,
            reason=f"Node Total Ram ({profile.ram_gib}) below {label} requirements",
        )

    return TierCheckResult(passed=True)


def read_hardware_profile(inspector: HardwareInspector) -> HardwareProfile:
    return HardwareProfile(
        cpu_threads=inspector.cpu_thread_count(),
        total_ram_bytes=inspector.total_memory_bytes(),
    )


async def confirm_node_tier_hardware(
    inspector: HardwareInspector,
    tier_oracle: TierOracle,
    timeout: float | None = None,
) -> bool:
    """
    Check this node's hardware against its tier.

    Returns False (and logs why) when the hardware falls short, when the tier
    is unknown, or when the tier oracle or the hardware read fails or times out.
    """
    if timeout is None:
        timeout = settings.tier_oracle_timeout_seconds

    try:
        tier_name = await asyncio.wait_for(tier_oracle.node_tier(), timeout)
        stake = await asyncio.wait_for(tier_oracle.node_stake(), timeout)
        profile = await asyncio.wait_for(
            asyncio.to_thread(read_hardware_profile, inspector), timeout
        )
    except asyncio.TimeoutError:
        logger.error("hardware_check_timeout", timeout_seconds=timeout)
        return False
    except Exception as e:
        logger.error("hardware_check_failed", error=str(e), error_type=type(e).__name__)
        return False

    tier = resolve_tier(tier_name)
    if tier is None:
        logger.error("unknown_node_tier", tier=tier_name)
        return False

    result = check_tier(tier, stake, profile)
    if not result.passed:
        logger.error(
            "hardware_requirements_not_met",
            reason=result.reason,
            tier=tier.value,
            stake=stake,
            cpu_threads=profile.cpu_threads,
            ram_gib=profile.ram_gib,
        )
        return False

    return True

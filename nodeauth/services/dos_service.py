import asyncio
from dataclasses import dataclass

import structlog

from nodeauth.config import settings
from nodeauth.errors import DosRejectedError, NodeAuthError, OracleUnavailableError
from nodeauth.services.oracles import DOSStatus, DosOutcome, HealthOracle

logger = structlog.get_logger()

HARDWARE_SPECS_CODE = 100
HARDWARE_SPECS_MESSAGE = "Minimum hardware required for FluxNode tier not met"

# DOS messages reported under the "DOS" category; anything else is a connectivity error
DOS_CATEGORY_MESSAGES = frozenset({"Flux IP detection failed", "Flux collision detection"})


@dataclass(frozen=True, slots=True)
class AdmissionDecision:
    allowed: bool
    error: NodeAuthError | None = None


def classify_dos_status(status: DOSStatus) -> AdmissionDecision:
    """Turn a DOS oracle response into an admission decision. No side effects."""
    if status.outcome is not DosOutcome.OK:
        return AdmissionDecision(allowed=False, error=OracleUnavailableError())

    # Flagged hardware wins over any DOS state
    if not status.node_hardware_specs_good:
        return AdmissionDecision(
            allowed=False,
            error=DosRejectedError(HARDWARE_SPECS_MESSAGE, code=HARDWARE_SPECS_CODE),
        )

    if status.dos_state != 0:
        message = status.dos_message or ""
        name = "DOS" if message in DOS_CATEGORY_MESSAGES else "CONNERROR"
        return AdmissionDecision(
            allowed=False,
            error=DosRejectedError(message, name=name, code=status.dos_state),
        )

    return AdmissionDecision(allowed=True)


async def query_dos_status(oracle: HealthOracle, timeout: float | None = None) -> DOSStatus:
    """Query the health oracle once; a timeout or oracle failure counts as a failed query."""
    if timeout is None:
        timeout = settings.dos_oracle_timeout_seconds

    try:
        return await asyncio.wait_for(oracle.query(), timeout)
    except asyncio.TimeoutError:
        logger.error("dos_oracle_timeout", timeout_seconds=timeout)
    except Exception as e:
        logger.error("dos_oracle_failed", error=str(e), error_type=type(e).__name__)
    return DOSStatus.failed()


async def evaluate_dos_gate(
    oracle: HealthOracle, timeout: float | None = None
) -> AdmissionDecision:
    status = await query_dos_status(oracle, timeout)
    decision = classify_dos_status(status)
    if not decision.allowed:
        logger.warning(
            "dos_state_rejected",
            code=decision.error.code,
            category=decision.error.name,
            dos_message=decision.error.message,
        )
    return decision

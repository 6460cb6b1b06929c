"""
Collaborators the admission core consumes but does not own.

Each collaborator is a Protocol with one default implementation: psutil for
the local hardware, settings for the node tier and stake, and an HTTP
endpoint for the DOS state.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import httpx
import psutil
import structlog

from nodeauth.config import settings

logger = structlog.get_logger()


class DosOutcome(str, Enum):
    OK = "ok"
    QUERY_FAILED = "error"


@dataclass(frozen=True, slots=True)
class DOSStatus:
    outcome: DosOutcome
    dos_state: int = 0
    dos_message: str | None = None
    node_hardware_specs_good: bool = True

    @classmethod
    def failed(cls) -> "DOSStatus":
        return cls(outcome=DosOutcome.QUERY_FAILED)


class HardwareInspector(Protocol):
    def cpu_thread_count(self) -> int: ...

    def total_memory_bytes(self) -> int: ...


class TierOracle(Protocol):
    async def node_tier(self) -> str: ...

    async def node_stake(self) -> int: ...


class HealthOracle(Protocol):
    async def query(self) -> DOSStatus: ...


class PsutilHardwareInspector:
    def cpu_thread_count(self) -> int:
        return psutil.cpu_count(logical=True) or 0

    def total_memory_bytes(self) -> int:
        return psutil.virtual_memory().total


class StaticTierOracle:
    """Tier and collateral as configured for this node."""

    def __init__(self, tier: str | None = None, stake: int | None = None) -> None:
        self._tier = settings.node_tier if tier is None else tier
        self._stake = settings.node_collateral if stake is None else stake

    async def node_tier(self) -> str:
        return self._tier

    async def node_stake(self) -> int:
        return self._stake


def parse_dos_response(body: dict) -> DOSStatus:
    """
    Parse a ``{"status": ..., "data": {"dosState": ...}}`` DOS state response.

    Anything other than a well-formed success body counts as a failed query.
    """
    if not isinstance(body, dict) or body.get("status") != "success":
        return DOSStatus.failed()

    data = body.get("data")
    if not isinstance(data, dict):
        return DOSStatus.failed()

    dos_state = data.get("dosState")
    if not isinstance(dos_state, int) or isinstance(dos_state, bool) or dos_state < 0:
        return DOSStatus.failed()

    dos_message = data.get("dosMessage")
    if dos_message is not None and not isinstance(dos_message, str):
        dos_message = str(dos_message)

    return DOSStatus(
        outcome=DosOutcome.OK,
        dos_state=dos_state,
        dos_message=dos_message,
        # Absent flag means the oracle did not flag the hardware
        node_hardware_specs_good=data.get("nodeHardwareSpecsGood", True) is not False,
    )


class HttpHealthOracle:
    def __init__(self, url: str | None = None, timeout: float | None = None) -> None:
        self.url = url or settings.dos_oracle_url
        self.timeout = settings.dos_oracle_timeout_seconds if timeout is None else timeout

    async def query(self) -> DOSStatus:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(self.url, timeout=self.timeout)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.error("dos_oracle_http_error", status_code=e.response.status_code)
            return DOSStatus.failed()
        except httpx.RequestError as e:
            logger.error("dos_oracle_request_error", error=str(e))
            return DOSStatus.failed()
        except ValueError:
            logger.error("dos_oracle_invalid_json")
            return DOSStatus.failed()

        return parse_dos_response(body)

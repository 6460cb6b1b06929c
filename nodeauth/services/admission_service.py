from sqlalchemy.orm import Session

from nodeauth.errors import HardwareIneligibleError
from nodeauth.models.login_phrase import LoginPhrase
from nodeauth.services.dos_service import evaluate_dos_gate
from nodeauth.services.hardware_service import confirm_node_tier_hardware
from nodeauth.services.oracles import HardwareInspector, HealthOracle, TierOracle
from nodeauth.services.phrase_service import issue_login_phrase


async def request_login_phrase(
    db: Session,
    inspector: HardwareInspector,
    tier_oracle: TierOracle,
    health_oracle: HealthOracle,
) -> LoginPhrase:
    """
    Issue a login phrase if this node may accept operator logins right now.

    Gates run in order: local hardware against the node tier, then the DOS
    state. Both are re-evaluated on every call.
    """
    if not await confirm_node_tier_hardware(inspector, tier_oracle):
        raise HardwareIneligibleError()

    decision = await evaluate_dos_gate(health_oracle)
    if not decision.allowed:
        raise decision.error

    return issue_login_phrase(db)

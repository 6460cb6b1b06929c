"""FastAPI dependencies for the collaborators the id endpoints rely on."""

from nodeauth.services.oracles import HttpHealthOracle, PsutilHardwareInspector, StaticTierOracle
from nodeauth.services.signature_service import BitcoinMessageVerifier


def get_hardware_inspector():
    return PsutilHardwareInspector()


def get_tier_oracle():
    return StaticTierOracle()


def get_health_oracle():
    return HttpHealthOracle()


def get_signature_verifier():
    return BitcoinMessageVerifier()

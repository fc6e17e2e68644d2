from portfolio.models.user import User, UserRole
from portfolio.models.indicator import Criteria, Indicator, IndicatorStatus
from portfolio.models.witness import Witness, WitnessFileType
from portfolio.models.strategy import Strategy, UserStrategy
from portfolio.models.catalog import Capability, Change
from portfolio.models.signature import Signature, SignatureStatus
from portfolio.models.security_audit import SecurityAuditEvent

__all__ = [
    "User",
    "UserRole",
    "Indicator",
    "IndicatorStatus",
    "Criteria",
    "Witness",
    "WitnessFileType",
    "Strategy",
    "UserStrategy",
    "Capability",
    "Change",
    "Signature",
    "SignatureStatus",
    "SecurityAuditEvent",
]

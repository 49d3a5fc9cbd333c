from .audit_log import AuditEntry, AuditLog
from .signer import PolicyCode, PolicySigner, PolicyViolation, SignRequest, SignResult

__all__ = [
    "AuditEntry",
    "AuditLog",
    "PolicyCode",
    "PolicySigner",
    "PolicyViolation",
    "SignRequest",
    "SignResult",
]

from app.ledger.base import BaseAttestationSubmitter
from app.ledger.factory import AttestationSubmitterFactory
from app.ledger.models import AttestationSubmission, SubmissionStatus

__all__ = [
    "AttestationSubmission",
    "AttestationSubmitterFactory",
    "BaseAttestationSubmitter",
    "SubmissionStatus",
]

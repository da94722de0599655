from dataclasses import dataclass


@dataclass(frozen=True)
class AttestationSubmission:
    """Everything the ledger needs to record one attestation."""

    schema_id: str
    recipient: str
    payload: bytes
    revocable: bool = True
    expiration: int | None = None

    @property
    def expiration_time(self) -> int:
        """Expiration as the ledger expects it; 0 means it never expires."""
        return self.expiration or 0


@dataclass(frozen=True)
class SubmissionStatus:
    """Ledger-side state of a previously broadcast transaction."""

    transaction_hash: str
    status: str
    attestation_id: str | None = None

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"

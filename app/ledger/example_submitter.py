"""In-memory ledger.

Behaves like the EAS submitter without a network: broadcasts are recorded
and confirmed immediately. Useful for local development and tests.
"""

import hashlib
import itertools

from app.ledger.base import BaseAttestationSubmitter, SignedCallback
from app.ledger.models import AttestationSubmission, SubmissionStatus
from app.processor.models import AttestationReceipt


def _hex_digest(*parts: bytes) -> str:
    return "0x" + hashlib.sha256(b"|".join(parts)).hexdigest()


class ExampleAttestationSubmitter(BaseAttestationSubmitter):
    """Records attestations in a dict keyed by transaction hash."""

    def __init__(self) -> None:
        self._nonce = itertools.count()
        self.transactions: dict[str, AttestationSubmission] = {}

    async def broadcast(
        self,
        submission: AttestationSubmission,
        on_signed: SignedCallback | None = None,
    ) -> str:
        transaction_hash = _hex_digest(
            submission.schema_id.encode(),
            submission.recipient.encode(),
            submission.payload,
            str(next(self._nonce)).encode(),
        )
        if on_signed is not None:
            on_signed(transaction_hash)
        self.transactions[transaction_hash] = submission
        return transaction_hash

    async def wait_for_inclusion(
        self,
        submission: AttestationSubmission,
        transaction_hash: str,
    ) -> AttestationReceipt:
        return AttestationReceipt(
            attestation_id=_hex_digest(b"uid", transaction_hash.encode()),
            schema_id=submission.schema_id,
            recipient=submission.recipient,
            payload=submission.payload,
            revocable=submission.revocable,
            expiration=submission.expiration,
            transaction_hash=transaction_hash,
        )

    async def lookup(self, transaction_hash: str) -> SubmissionStatus:
        if transaction_hash not in self.transactions:
            return SubmissionStatus(transaction_hash, SubmissionStatus.PENDING)
        return SubmissionStatus(
            transaction_hash,
            SubmissionStatus.CONFIRMED,
            attestation_id=_hex_digest(b"uid", transaction_hash.encode()),
        )

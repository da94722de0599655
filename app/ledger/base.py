from abc import ABC, abstractmethod
from collections.abc import Callable

from app.ledger.models import AttestationSubmission, SubmissionStatus
from app.processor.models import AttestationReceipt

SignedCallback = Callable[[str], None]


class BaseAttestationSubmitter(ABC):
    """Contract for signing, broadcasting and confirming attestations.

    Submission is split in two so callers can record the transaction hash
    before waiting on the ledger. Once ``broadcast`` has handed the signed
    transaction to the network it cannot be withdrawn.
    """

    @abstractmethod
    async def broadcast(
        self,
        submission: AttestationSubmission,
        on_signed: SignedCallback | None = None,
    ) -> str:
        """Sign and broadcast the attestation transaction.

        Args:
            submission: Schema, recipient and encoded payload.
            on_signed: Called with the transaction hash after signing and
                before the transaction is sent.

        Returns:
            The transaction hash.

        Raises:
            SigningUnavailable: if the signing credential is missing or invalid.
            LedgerUnavailable: if the node cannot be reached before sending.
            SubmissionRejected: if the ledger refuses the transaction.
            AmbiguousSubmission: if sending failed in a way that may have
                reached the network.
        """

    @abstractmethod
    async def wait_for_inclusion(
        self,
        submission: AttestationSubmission,
        transaction_hash: str,
    ) -> AttestationReceipt:
        """Block until the transaction is included and return its receipt.

        Raises:
            ConfirmationTimeout: if inclusion is not observed within the bound.
            SubmissionRejected: if the transaction was included but reverted.
            AmbiguousSubmission: if the ledger cannot be queried.
        """

    @abstractmethod
    async def lookup(self, transaction_hash: str) -> SubmissionStatus:
        """Report the current ledger state of a broadcast transaction."""

    async def submit(
        self,
        schema_id: str,
        recipient: str,
        payload: bytes,
        revocable: bool = True,
        expiration: int | None = None,
    ) -> AttestationReceipt:
        """Broadcast an attestation and wait for its inclusion."""
        submission = AttestationSubmission(
            schema_id=schema_id,
            recipient=recipient,
            payload=payload,
            revocable=revocable,
            expiration=expiration,
        )
        transaction_hash = await self.broadcast(submission)
        return await self.wait_for_inclusion(submission, transaction_hash)

    async def aclose(self) -> None:
        """Release network resources held by the submitter."""

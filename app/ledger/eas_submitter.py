import asyncio

import aiohttp
from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import (
    ContractLogicError,
    TimeExhausted,
    TransactionNotFound,
    Web3RPCError,
)
from web3.logs import DISCARD

from app.ledger.base import BaseAttestationSubmitter, SignedCallback
from app.ledger.eas_abi import EAS_ABI
from app.ledger.models import AttestationSubmission, SubmissionStatus
from app.logging.logger import Log
from app.processor.exceptions import (
    AmbiguousSubmission,
    ConfirmationTimeout,
    LedgerUnavailable,
    SigningUnavailable,
    SubmissionRejected,
)
from app.processor.models import AttestationReceipt

ZERO_UID = b"\x00" * 32

_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError)
_REJECTION_ERRORS = (ContractLogicError, Web3RPCError)


class EasAttestationSubmitter(BaseAttestationSubmitter):
    """Submits attestations to an EAS contract over JSON-RPC."""

    def __init__(
        self,
        *,
        rpc_url: str,
        private_key: str,
        contract_address: str,
        confirmation_timeout_seconds: float,
        poll_interval_seconds: float = 2.0,
        request_timeout_seconds: float = 30.0,
        w3: AsyncWeb3 | None = None,
    ) -> None:
        self._w3 = w3 or AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": request_timeout_seconds})
        )
        self._contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=EAS_ABI,
        )
        self._private_key = private_key
        self._confirmation_timeout = confirmation_timeout_seconds
        self._poll_interval = poll_interval_seconds

    async def broadcast(
        self,
        submission: AttestationSubmission,
        on_signed: SignedCallback | None = None,
    ) -> str:
        account = self._signer()
        try:
            transaction = await self._build_transaction(account, submission)
        except _REJECTION_ERRORS as exc:
            raise SubmissionRejected(f"Ledger refused attestation: {exc}") from exc
        except _TRANSPORT_ERRORS as exc:
            raise LedgerUnavailable(f"Ledger node unreachable: {exc}") from exc

        signed = account.sign_transaction(transaction)
        transaction_hash = Web3.to_hex(signed.hash)
        if on_signed is not None:
            on_signed(transaction_hash)

        try:
            await self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except _REJECTION_ERRORS as exc:
            raise SubmissionRejected(f"Ledger refused transaction: {exc}") from exc
        except _TRANSPORT_ERRORS as exc:
            raise AmbiguousSubmission(
                f"Broadcast outcome unknown: {exc}",
                transaction_hash=transaction_hash,
            ) from exc
        Log.info("Attestation transaction broadcast", tx=transaction_hash)
        return transaction_hash

    async def wait_for_inclusion(
        self,
        submission: AttestationSubmission,
        transaction_hash: str,
    ) -> AttestationReceipt:
        try:
            receipt = await self._w3.eth.wait_for_transaction_receipt(
                transaction_hash,
                timeout=self._confirmation_timeout,
                poll_latency=self._poll_interval,
            )
        except TimeExhausted as exc:
            raise ConfirmationTimeout(
                f"Transaction not included within {self._confirmation_timeout}s",
                transaction_hash=transaction_hash,
            ) from exc
        except _TRANSPORT_ERRORS as exc:
            raise AmbiguousSubmission(
                f"Lost contact with ledger while awaiting inclusion: {exc}",
                transaction_hash=transaction_hash,
            ) from exc

        if receipt["status"] != 1:
            raise SubmissionRejected(f"Transaction {transaction_hash} reverted")
        attestation_id = self._attestation_uid(receipt)
        if attestation_id is None:
            raise AmbiguousSubmission(
                "Transaction included without an Attested event",
                transaction_hash=transaction_hash,
            )
        return AttestationReceipt(
            attestation_id=attestation_id,
            schema_id=submission.schema_id,
            recipient=submission.recipient,
            payload=submission.payload,
            revocable=submission.revocable,
            expiration=submission.expiration,
            transaction_hash=transaction_hash,
        )

    async def lookup(self, transaction_hash: str) -> SubmissionStatus:
        try:
            receipt = await self._w3.eth.get_transaction_receipt(transaction_hash)
        except TransactionNotFound:
            return SubmissionStatus(transaction_hash, SubmissionStatus.PENDING)
        except _TRANSPORT_ERRORS as exc:
            raise LedgerUnavailable(f"Ledger node unreachable: {exc}") from exc
        if receipt["status"] != 1:
            return SubmissionStatus(transaction_hash, SubmissionStatus.REVERTED)
        return SubmissionStatus(
            transaction_hash,
            SubmissionStatus.CONFIRMED,
            attestation_id=self._attestation_uid(receipt),
        )

    async def aclose(self) -> None:
        await self._w3.provider.disconnect()

    def _signer(self) -> LocalAccount:
        if not self._private_key:
            raise SigningUnavailable("Ledger signing key is not configured")
        try:
            return Account.from_key(self._private_key)
        except (ValueError, TypeError) as exc:
            raise SigningUnavailable("Ledger signing key is invalid") from exc

    async def _build_transaction(
        self,
        account: LocalAccount,
        submission: AttestationSubmission,
    ) -> dict[str, object]:
        request = (
            Web3.to_bytes(hexstr=submission.schema_id),
            (
                Web3.to_checksum_address(submission.recipient),
                submission.expiration_time,
                submission.revocable,
                ZERO_UID,
                submission.payload,
                0,
            ),
        )
        nonce = await self._w3.eth.get_transaction_count(account.address, "pending")
        chain_id = await self._w3.eth.chain_id
        return await self._contract.functions.attest(request).build_transaction(
            {"from": account.address, "nonce": nonce, "chainId": chain_id}
        )

    def _attestation_uid(self, receipt: object) -> str | None:
        events = self._contract.events.Attested().process_receipt(receipt, errors=DISCARD)
        if not events:
            return None
        return Web3.to_hex(events[0]["args"]["uid"])

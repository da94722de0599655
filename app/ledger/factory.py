from app.config.settings import Settings
from app.ledger.base import BaseAttestationSubmitter
from app.ledger.eas_submitter import EasAttestationSubmitter
from app.ledger.example_submitter import ExampleAttestationSubmitter


class AttestationSubmitterFactory:
    """Creates the configured attestation submitter."""

    PROVIDERS = ("eas", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseAttestationSubmitter:
        provider = settings.ledger_provider.lower()
        if provider == "example":
            return ExampleAttestationSubmitter()
        if provider == "eas":
            return EasAttestationSubmitter(
                rpc_url=settings.ledger_rpc_url,
                private_key=settings.ledger_private_key,
                contract_address=settings.eas_contract_address,
                confirmation_timeout_seconds=settings.ledger_confirmation_timeout_seconds,
                poll_interval_seconds=settings.ledger_poll_interval_seconds,
                request_timeout_seconds=settings.ledger_broadcast_timeout_seconds,
            )
        raise ValueError(
            f"Unknown ledger provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )

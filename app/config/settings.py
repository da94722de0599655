from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    host: str = "0.0.0.0"
    port: int = 3000
    cors_allowed_origins: str = "*"

    upload_dir: str = "uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    storage_provider: str = "pinata"
    pinata_jwt: str = ""
    pinata_api_url: str = "https://api.pinata.cloud"
    pinata_gateway_url: str = "https://gateway.pinata.cloud"
    storage_timeout_seconds: int = 30

    description_provider: str = "openai"
    openai_api_key: str = ""
    openai_model_name: str = "gpt-4o"
    openai_base_url: str | None = None
    description_max_tokens: int = 300
    description_timeout_seconds: int = 60

    ledger_provider: str = "eas"
    ledger_rpc_url: str = "https://sepolia.base.org"
    ledger_private_key: str = ""
    eas_contract_address: str = "0x4200000000000000000000000000000000000021"
    eas_schema_uid: str = (
        "0x0ab02d640f0bb27a4b16a89bb51e53fbe1693647bcb02048650d32a7d6cc8d40"
    )
    eas_schema: str = (
        "string event_name,string event_description,string occassion,"
        "string[] location_coordinates,string memory_description"
    )
    eas_schema_resolver: str = "0x0000000000000000000000000000000000000000"
    eas_schema_revocable: bool = True
    attestation_revocable: bool = True
    attestation_expiration: int = 0
    ledger_broadcast_timeout_seconds: int = 30
    ledger_confirmation_timeout_seconds: int = 120
    ledger_poll_interval_seconds: float = 2.0

    # Parsed records must never carry an empty field.
    default_event_name: str = Field(default="Untitled Event", min_length=1)
    default_event_description: str = Field(default="No description available", min_length=1)
    default_occasion: str = Field(default="Unspecified", min_length=1)
    memory_description: str = Field(
        default="Generated from automated analysis of the image", min_length=1
    )

    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

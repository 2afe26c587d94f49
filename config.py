from typing import Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChainSettings(BaseModel):
    """Node endpoint and signing identity."""
    rpc_url: str = Field(default="http://127.0.0.1:8545", description="JSON-RPC endpoint of the target network")
    private_key: Optional[SecretStr] = Field(default=None, description="Hex private key used to sign admin transactions")
    chain_id: Optional[int] = Field(default=None, description="Chain id; queried from the node when unset")


class RefineEngineSettings(BaseModel):
    address: Optional[str] = Field(
        default=None,
        description="Deployed RefineEngine contract address; the script constant is used when unset",
    )
    receipt_timeout: Optional[float] = Field(
        default=None,
        description="Seconds to wait for each receipt; unset waits indefinitely",
    )


class Settings(BaseSettings):
    chain: ChainSettings = Field(default_factory=ChainSettings)
    refine_engine: RefineEngineSettings = Field(default_factory=RefineEngineSettings)
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )


settings = Settings()

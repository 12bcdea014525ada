"""
Token metadata resolver: mint decimals plus a display name.

Resolution runs through explicit stages:

    MINT_READ → METADATA_DERIVED → METADATA_FETCHED → NAME_PARSED

Only MINT_READ may fail outward (there is no safe guess for decimals inside
resolve()); every later stage degrades to the "Unknown Token <mint>" name and
keeps the decimals already read. resolve_or_default() also absorbs a failed
mint read, using the configured default decimals.

The name is read at a fixed offset of the Metaplex metadata account
(key u8, update_authority [32], mint [32], then the name). This is a
best-effort heuristic for that one account schema; a key byte other than
MetadataV1 is logged as a schema mismatch.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol, Sequence

from solders.pubkey import Pubkey

from pool_monitor.core.exceptions import DecodeError
from pool_monitor.monitor_logging import get_logger
from pool_monitor.solana_listener.models import MintInfo, TokenInfo

logger = get_logger(__name__)

METADATA_SEED = b"metadata"

# SPL Token mint: mint_authority COption<Pubkey> (36) + supply u64 (8) + decimals u8
# + is_initialized bool + freeze_authority COption<Pubkey> (36) = 82 bytes.
MINT_ACCOUNT_LEN = 82
MINT_DECIMALS_OFFSET = 44
MINT_INITIALIZED_OFFSET = 45

# key (1) + update_authority (32) + mint (32)
METADATA_NAME_OFFSET = 65
METADATA_KEY_V1 = 4

DEFAULT_DECIMALS = 9


class Stage(enum.Enum):
    MINT_READ = "mint_read"
    METADATA_DERIVED = "metadata_derived"
    METADATA_FETCHED = "metadata_fetched"
    NAME_PARSED = "name_parsed"


class AccountSource(Protocol):
    async def get_account_data(self, address: Pubkey | str) -> bytes: ...

    def derive_address(self, seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey: ...


@dataclass(frozen=True)
class Resolution:
    """Outcome of one resolve() call: the token and the last stage that succeeded."""

    token: TokenInfo
    stage: Stage
    degraded_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.degraded_reason is not None


def placeholder_name(mint: Pubkey | str) -> str:
    return f"Unknown Token {mint}"


def decode_mint(data: bytes) -> MintInfo:
    """Decimals and init flag from an SPL Token (or Token-2022) mint account."""
    if len(data) < MINT_ACCOUNT_LEN:
        raise DecodeError(f"mint account is {len(data)} bytes, need {MINT_ACCOUNT_LEN}")
    initialized = data[MINT_INITIALIZED_OFFSET]
    if initialized > 1:
        raise DecodeError(f"mint is_initialized byte is {initialized}")
    if not initialized:
        raise DecodeError("mint account is not initialized")
    return MintInfo(decimals=data[MINT_DECIMALS_OFFSET], is_initialized=True)


def parse_metadata_name(data: bytes) -> str | None:
    """
    Name from a metadata account: length byte at offset 65, then that many bytes.
    Returns None if the account is too short or the name is not UTF-8.
    """
    if len(data) < METADATA_NAME_OFFSET + 1:
        return None
    length = data[METADATA_NAME_OFFSET]
    start = METADATA_NAME_OFFSET + 1
    if len(data) < start + length:
        return None
    try:
        name = data[start:start + length].decode("utf-8")
    except UnicodeDecodeError:
        return None
    return name.strip("\x00")


class MetadataResolver:
    """Resolve a mint's decimals and display name through the ledger client."""

    def __init__(
        self,
        client: AccountSource,
        metadata_program_id: Pubkey | str,
        *,
        default_decimals: int = DEFAULT_DECIMALS,
    ) -> None:
        self._client = client
        self._metadata_program = (
            metadata_program_id
            if isinstance(metadata_program_id, Pubkey)
            else Pubkey.from_string(metadata_program_id)
        )
        self._default_decimals = default_decimals

    def metadata_address(self, mint: Pubkey) -> Pubkey:
        return self._client.derive_address(
            [METADATA_SEED, bytes(self._metadata_program), bytes(mint)],
            self._metadata_program,
        )

    def _degrade(self, mint: Pubkey, decimals: int, stage: Stage, reason: str) -> Resolution:
        logger.warning(
            "metadata_degraded",
            mint=str(mint),
            stage=stage.value,
            reason=reason,
        )
        return Resolution(
            token=TokenInfo(address=str(mint), name=placeholder_name(mint), decimals=decimals),
            stage=stage,
            degraded_reason=reason,
        )

    async def resolve_detailed(self, mint: Pubkey) -> Resolution:
        """
        Run all stages and report where resolution stopped.

        Raises:
            AccountNotFound, RpcError, DecodeError: the mint account read failed.
        """
        # MINT_READ
        mint_info = decode_mint(await self._client.get_account_data(mint))
        decimals = mint_info.decimals
        stage = Stage.MINT_READ

        # METADATA_DERIVED
        try:
            metadata_addr = self.metadata_address(mint)
        except (TypeError, ValueError) as e:
            return self._degrade(mint, decimals, stage, f"derivation failed: {e}")
        stage = Stage.METADATA_DERIVED

        # METADATA_FETCHED
        try:
            data = await self._client.get_account_data(metadata_addr)
        except Exception as e:
            return self._degrade(mint, decimals, stage, f"metadata fetch failed: {e}")
        stage = Stage.METADATA_FETCHED
        logger.debug(
            "metadata_account_fetched",
            mint=str(mint),
            metadata_address=str(metadata_addr),
            data_len=len(data),
        )
        if data and data[0] != METADATA_KEY_V1:
            logger.warning(
                "metadata_schema_mismatch",
                mint=str(mint),
                key=data[0],
                expected_key=METADATA_KEY_V1,
            )

        # NAME_PARSED
        name = parse_metadata_name(data)
        if name is None:
            return self._degrade(mint, decimals, stage, "name field unreadable")
        logger.info("metadata_name_parsed", mint=str(mint), name=name)
        return Resolution(
            token=TokenInfo(address=str(mint), name=name, decimals=decimals),
            stage=Stage.NAME_PARSED,
        )

    async def resolve(self, mint: Pubkey) -> TokenInfo:
        """
        TokenInfo for mint; metadata failures degrade to the placeholder name.

        Raises:
            AccountNotFound, RpcError, DecodeError: the mint account read failed.
        """
        return (await self.resolve_detailed(mint)).token

    async def resolve_or_default(self, mint: Pubkey) -> TokenInfo:
        """Like resolve(), but a failed mint read yields default decimals and the placeholder."""
        try:
            return await self.resolve(mint)
        except Exception as e:
            logger.warning(
                "token_info_fetch_failed",
                mint=str(mint),
                default_decimals=self._default_decimals,
                error=str(e),
            )
            return TokenInfo(
                address=str(mint),
                name=placeholder_name(mint),
                decimals=self._default_decimals,
            )

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Sequence, Tuple

from eth_account import Account
from pydantic import ValidationError
from web3 import AsyncHTTPProvider, AsyncWeb3

from dapi_backend.core.errors import ArtifactError, DeploymentError
from dapi_backend.deploy.contracts import ContractArtifact, DeployedContract

logger = logging.getLogger(__name__)

Account.enable_unaudited_hdwallet_features()

DEFAULT_RECEIPT_TIMEOUT_S = 180

# one nonce sequence per (rpc endpoint, sender)
_SENDER_LOCKS: Dict[Tuple[str, str], asyncio.Lock] = {}


def _sender_lock(endpoint: str, sender: str) -> asyncio.Lock:
    key = (endpoint, sender.lower())
    lock = _SENDER_LOCKS.get(key)
    if lock is None:
        lock = _SENDER_LOCKS[key] = asyncio.Lock()
    return lock


def load_artifact(path: str) -> ContractArtifact:
    """Read a compiled contract (hardhat or foundry json) into abi + bytecode."""
    p = Path(path)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ArtifactError(f"artifact not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ArtifactError(f"artifact is not valid json: {path}") from e

    bytecode = raw.get("bytecode")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")

    try:
        return ContractArtifact(abi=raw.get("abi") or [], bytecode=bytecode or "")
    except ValidationError as e:
        raise ArtifactError(f"invalid artifact {path}: {e}") from e


class EvmDeployer:
    def __init__(self, *, receipt_timeout_s: int = DEFAULT_RECEIPT_TIMEOUT_S) -> None:
        self.receipt_timeout_s = receipt_timeout_s

    def load_artifact(self, path: str) -> ContractArtifact:
        return load_artifact(path)

    async def deploy_with_http_provider(
        self,
        endpoint: str,
        mnemonic: str,
        abi: list,
        bytecode: str,
        constructor_args: Sequence[Any] = (),
    ) -> DeployedContract:
        account = Account.from_mnemonic(mnemonic)
        w3 = AsyncWeb3(AsyncHTTPProvider(endpoint))
        try:
            contract = w3.eth.contract(abi=abi, bytecode=bytecode)

            async with _sender_lock(endpoint, account.address):
                nonce = await w3.eth.get_transaction_count(account.address, "pending")
                chain_id = await w3.eth.chain_id
                tx = await contract.constructor(*constructor_args).build_transaction(
                    {"from": account.address, "nonce": nonce, "chainId": chain_id}
                )
                signed = account.sign_transaction(tx)
                tx_hash = w3.to_hex(await w3.eth.send_raw_transaction(signed.raw_transaction))

            logger.info("contract deployment sent: endpoint=%s tx=%s", endpoint, tx_hash)
            receipt = await w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout_s)
            if receipt.get("status") != 1 or not receipt.get("contractAddress"):
                raise DeploymentError(f"contract deployment reverted: tx={tx_hash}")

            return DeployedContract(address=receipt["contractAddress"], tx_hash=tx_hash)
        finally:
            # each provider caches its own aiohttp session
            await w3.provider.disconnect()

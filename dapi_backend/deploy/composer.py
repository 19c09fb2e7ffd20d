from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

from dapi_backend.core.config import Settings, settings
from dapi_backend.deploy.contracts import ContractArtifact, DeployedContract
from dapi_backend.deploy.evm import EvmDeployer
from dapi_backend.deploy.phala import PhatComposerClient


class ContractDeployer:
    """Default DeploymentClient: EVM side through web3, Phala side through the composer."""

    def __init__(self, *, evm: EvmDeployer, phala: PhatComposerClient) -> None:
        self.evm = evm
        self.phala = phala

    def load_artifact(self, path: str) -> ContractArtifact:
        return self.evm.load_artifact(path)

    async def deploy_with_http_provider(
        self,
        endpoint: str,
        mnemonic: str,
        abi: list,
        bytecode: str,
        constructor_args: Sequence[Any] = (),
    ) -> DeployedContract:
        return await self.evm.deploy_with_http_provider(endpoint, mnemonic, abi, bytecode, constructor_args)

    async def deploy_runtime_contract(
        self,
        mnemonic: str,
        cluster_id: str,
        ws_endpoint: str,
        runtime_endpoint: str,
        artifact_path: str,
        init_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        return await self.phala.deploy_runtime_contract(
            mnemonic, cluster_id, ws_endpoint, runtime_endpoint, artifact_path, init_config
        )

    async def configure_runtime_contract(
        self,
        mnemonic: str,
        ws_endpoint: str,
        runtime_endpoint: str,
        artifact_path: str,
        action: str,
        config: Dict[str, Any],
        *,
        contract_id: str,
    ) -> None:
        await self.phala.configure_runtime_contract(
            mnemonic, ws_endpoint, runtime_endpoint, artifact_path, action, config, contract_id=contract_id
        )

    async def aclose(self) -> None:
        await self.phala.aclose()


def build_deployer(cfg: Settings = settings) -> ContractDeployer:
    return ContractDeployer(
        evm=EvmDeployer(),
        phala=PhatComposerClient(cfg.phat_composer_url, timeout=cfg.phat_composer_timeout),
    )

from __future__ import annotations
from typing import Any, Dict, Optional, Protocol, Sequence

from dapi_backend.deploy.contracts import ContractArtifact, DeployedContract


class DeploymentClient(Protocol):
    def load_artifact(self, path: str) -> ContractArtifact:
        ...

    async def deploy_with_http_provider(
        self,
        endpoint: str,
        mnemonic: str,
        abi: list,
        bytecode: str,
        constructor_args: Sequence[Any] = (),
    ) -> DeployedContract:
        ...

    async def deploy_runtime_contract(
        self,
        mnemonic: str,
        cluster_id: str,
        ws_endpoint: str,
        runtime_endpoint: str,
        artifact_path: str,
        init_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        ...

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
        ...

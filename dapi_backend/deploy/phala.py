"""Phala druntime (fat contract) deployment through the phat composer sidecar.

The composer wraps the Phala SDK: it uploads the `.contract` bundle to the
cluster, instantiates it and forwards later messages to it. No retries happen
here; a failed call leaves the job at its last persisted status.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from dapi_backend.core.errors import DeploymentError
from dapi_backend.deploy.contracts import (
    RuntimeConfigureRequest,
    RuntimeDeployRequest,
    RuntimeDeployResponse,
)

logger = logging.getLogger(__name__)


class PhatComposerClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        resp = await self._client.post(path, json=body)
        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DeploymentError(f"composer {path} failed: {resp.status_code} {resp.text}") from e
        return resp.json() if resp.content else {}

    async def deploy_runtime_contract(
        self,
        mnemonic: str,
        cluster_id: str,
        ws_endpoint: str,
        runtime_endpoint: str,
        artifact_path: str,
        init_config: Optional[Dict[str, Any]] = None,
    ) -> str:
        req = RuntimeDeployRequest(
            mnemonic=mnemonic,
            cluster_id=cluster_id,
            ws_endpoint=ws_endpoint,
            runtime_endpoint=runtime_endpoint,
            artifact_path=artifact_path,
            init_config=init_config,
        )
        data = await self._post("/contracts/deploy", req.model_dump())
        contract_id = RuntimeDeployResponse.model_validate(data).contract_id
        logger.info("druntime deployed: cluster=%s contract=%s", cluster_id, contract_id)
        return contract_id

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
        req = RuntimeConfigureRequest(
            mnemonic=mnemonic,
            ws_endpoint=ws_endpoint,
            runtime_endpoint=runtime_endpoint,
            artifact_path=artifact_path,
            contract_id=contract_id,
            action=action,
            config=config,
        )
        await self._post(f"/contracts/{contract_id}/tx", req.model_dump())
        logger.info("druntime %s sent: contract=%s", action, contract_id)

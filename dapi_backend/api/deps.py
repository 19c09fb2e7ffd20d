from __future__ import annotations

from dapi_backend.core.broadcast import StatusBroadcaster, get_broadcaster as _get_broadcaster
from dapi_backend.deploy.base import DeploymentClient
from dapi_backend.deploy.composer import ContractDeployer, build_deployer

_deployer: ContractDeployer | None = None


def get_deployer() -> DeploymentClient:
    global _deployer
    if _deployer is None:
        _deployer = build_deployer()
    return _deployer


def get_broadcaster() -> StatusBroadcaster:
    return _get_broadcaster()


async def close_deployer() -> None:
    global _deployer
    if _deployer is not None:
        await _deployer.aclose()
        _deployer = None

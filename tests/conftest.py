import asyncio
import os
import tempfile
import uuid

_DB_DIR = tempfile.mkdtemp(prefix="dapi-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["DEPLOY_WORKFLOW"] = "deploy_then_configure"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from dapi_backend.core.broadcast import StatusBroadcaster  # noqa: E402
from dapi_backend.core.config import Settings  # noqa: E402
from dapi_backend.core.errors import DeploymentError  # noqa: E402
from dapi_backend.db.models import Chain, ChainType, Dapi, JobStatus, OracleInfo, Web2Info  # noqa: E402
from dapi_backend.db.session import AsyncSessionLocal, drop_models, init_models  # noqa: E402
from dapi_backend.deploy.contracts import ContractArtifact, DeployedContract  # noqa: E402
from dapi_backend.domain.dapi_service import DapiService  # noqa: E402
from dapi_backend.repositories.chain_repository import ChainRepository  # noqa: E402

WALLET = "0x1111111111111111111111111111111111111111"
PROTOCOL = "0x2222222222222222222222222222222222222222"


class FakeDeployer:
    """Records every call; `fail_on` names the methods that should blow up."""

    def __init__(self, runtime_address="0xAAA", anchor_address="0xBBB"):
        self.runtime_address = runtime_address
        self.anchor_address = anchor_address
        self.fail_on = set()
        self.calls = []
        # seconds the runtime deployment takes, to overlap concurrent runs
        self.delay = 0

    def _record(self, name, **kwargs):
        self.calls.append((name, kwargs))
        if name in self.fail_on:
            raise DeploymentError(f"{name} failed")

    def calls_to(self, name):
        return [kw for n, kw in self.calls if n == name]

    def load_artifact(self, path):
        self._record("load_artifact", path=path)
        return ContractArtifact(abi=[{"type": "constructor", "inputs": []}], bytecode="0x6080")

    async def deploy_with_http_provider(self, endpoint, mnemonic, abi, bytecode, constructor_args=()):
        self._record(
            "deploy_with_http_provider",
            endpoint=endpoint,
            mnemonic=mnemonic,
            abi=abi,
            bytecode=bytecode,
            constructor_args=list(constructor_args),
        )
        return DeployedContract(address=self.anchor_address, tx_hash="0xdead")

    async def deploy_runtime_contract(self, mnemonic, cluster_id, ws_endpoint, runtime_endpoint, artifact_path, init_config=None):
        self._record(
            "deploy_runtime_contract",
            mnemonic=mnemonic,
            cluster_id=cluster_id,
            ws_endpoint=ws_endpoint,
            runtime_endpoint=runtime_endpoint,
            artifact_path=artifact_path,
            init_config=init_config,
        )
        await asyncio.sleep(self.delay)
        return self.runtime_address

    async def configure_runtime_contract(self, mnemonic, ws_endpoint, runtime_endpoint, artifact_path, action, config, *, contract_id):
        self._record(
            "configure_runtime_contract",
            mnemonic=mnemonic,
            ws_endpoint=ws_endpoint,
            runtime_endpoint=runtime_endpoint,
            artifact_path=artifact_path,
            action=action,
            config=config,
            contract_id=contract_id,
        )


@pytest.fixture
def cfg():
    return Settings(
        sponsor_mnemonic="test test test test test test test test test test test junk",
        protocol_address=PROTOCOL,
        anchor_config_blob="0x01",
        js_engine_code_hash="0xjsengine",
        runtime_api_key="",
        phala_anchor_path="/artifacts/anchor.json",
        druntime_fat_path="/artifacts/druntime.contract",
        druntime_fat_v2_path="/artifacts/druntime_v2.contract",
    )


@pytest.fixture
def deployer():
    return FakeDeployer()


@pytest.fixture
def broadcaster():
    return StatusBroadcaster()


@pytest_asyncio.fixture
async def session():
    await drop_models()
    await init_models()
    async with AsyncSessionLocal() as s:
        yield s


@pytest_asyncio.fixture
async def chains(session):
    repo = ChainRepository(session)
    phala = await repo.save(Chain(
        id=str(uuid.uuid4()),
        chain_id=1,
        name="phala-poc5",
        type=ChainType.PHALA,
        ws_provider="wss://poc5.phala.network/ws",
        cluster_id="0x0000000000000000000000000000000000000000000000000000000000000001",
        pruntime="https://poc5.phala.network/tee-api-1",
    ))
    evm = await repo.save(Chain(
        id=str(uuid.uuid4()),
        chain_id=2,
        name="goerli",
        type=ChainType.EVM,
        http_provider="https://rpc.goerli.example",
    ))
    phala_target = await repo.save(Chain(
        id=str(uuid.uuid4()),
        chain_id=3,
        name="phala-mainnet",
        type=ChainType.PHALA,
        ws_provider="wss://api.phala.network/ws",
        cluster_id="0x02",
        pruntime="https://phala.example/tee",
    ))
    return {"phala": phala, "evm": evm, "phala_target": phala_target}


@pytest.fixture
def service(session, deployer, broadcaster, cfg):
    return DapiService(session, deployer=deployer, broadcaster=broadcaster, cfg=cfg)


def build_dapi(source_chain_id=1, target_chain_id=2, *, method="get", auth_type="none", name="eth-price"):
    return Dapi(
        name=name,
        description="price feed",
        wallet_address=WALLET,
        oracle_info=OracleInfo(
            source_chain_id=source_chain_id,
            target_chain_id=target_chain_id,
            web2_info=Web2Info(uri="https://api.example.com/price", method=method, auth_type=auth_type),
        ),
    )


@pytest.fixture
def make_dapi(service, chains):
    async def _make(status=JobStatus.CREATED, **kwargs):
        dapi = await service.save(build_dapi(**kwargs))
        if status != JobStatus.CREATED:
            await service.dapis.update_status(dapi.id, status)
        return dapi
    return _make

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from typing import Any, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.core.broadcast import STATUS_EVENT, StatusBroadcaster
from dapi_backend.core.config import Settings, settings
from dapi_backend.core.errors import (
    ChainNotSupportedError,
    JobNotFoundError,
    StatusUpdateError,
    UnsupportedWorkflowError,
)
from dapi_backend.db.models import Chain, ChainType, Dapi, JobStatus
from dapi_backend.deploy.base import DeploymentClient
from dapi_backend.deploy.contracts import RuntimeConfig
from dapi_backend.domain.state_machine import ensure_transition_allowed, is_reached
from dapi_backend.repositories.chain_repository import ChainRepository
from dapi_backend.repositories.dapi_repository import DapiRepository

logger = logging.getLogger(__name__)

CONFIG_ACTION = "config"

# keys the druntime accepts as constructor config
INIT_CONFIG_FIELDS = {"target_chain_rpc", "anchor_contract_addr", "web2_api_url_prefix", "api_key"}


class DeployWorkflow(str, enum.Enum):
    # deploy druntime, deploy anchor, then send the `config` action
    DEPLOY_THEN_CONFIGURE = "deploy_then_configure"
    # deploy anchor first, then instantiate druntime with its config
    INIT_CONFIG = "init_config"


# one submission at a time per dapi
_JOB_LOCKS: Dict[str, asyncio.Lock] = {}


def _job_lock(job_id: str) -> asyncio.Lock:
    lock = _JOB_LOCKS.get(job_id)
    if lock is None:
        lock = _JOB_LOCKS[job_id] = asyncio.Lock()
    return lock


def new_id() -> str:
    return str(uuid.uuid4())


def status_payload(job_id: str, status: JobStatus) -> Dict[str, Any]:
    return {"jobId": job_id, "status": status.name, "progress": int(status) * 10}


class DapiService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        deployer: DeploymentClient,
        broadcaster: StatusBroadcaster,
        cfg: Settings = settings,
    ) -> None:
        self.session = session
        self.deployer = deployer
        self.broadcaster = broadcaster
        self.cfg = cfg
        self.dapis = DapiRepository(session)
        self.chains = ChainRepository(session)

    # -----------------------
    # status
    # -----------------------

    async def emit(self, job_id: str, status: JobStatus) -> None:
        """Persist the status, then tell every subscriber about it."""
        if not await self.dapis.update_status(job_id, status):
            raise StatusUpdateError(job_id, int(status))
        self.broadcaster.emit(STATUS_EVENT, status_payload(job_id, status))

    @staticmethod
    def status(n: int) -> str:
        return JobStatus(n).name

    async def _advance(self, dapi: Dapi, to_status: JobStatus) -> None:
        if is_reached(dapi.status, to_status):
            return
        ensure_transition_allowed(JobStatus(dapi.status), to_status)
        await self.emit(dapi.id, to_status)
        dapi.status = int(to_status)

    async def _finish(self, dapi: Dapi) -> Dapi:
        ensure_transition_allowed(JobStatus(dapi.status), JobStatus.DONE)
        dapi.status = int(JobStatus.DONE)
        dapi = await self.dapis.update(dapi)
        self.broadcaster.emit(STATUS_EVENT, status_payload(dapi.id, JobStatus.DONE))
        logger.info("dapi %s done: druntime=%s anchor=%s", dapi.id, dapi.oracle_info.address, dapi.oracle_info.anchor)
        return dapi

    async def check_openapi(self, document: Any) -> Dict[str, Any]:
        return {"ok": True}

    # -----------------------
    # submission
    # -----------------------

    async def save(self, entity: Dapi) -> Dapi:
        """Insert web2 info, oracle info and the dapi itself as one unit."""
        oracle = entity.oracle_info
        source = await self.chains.find_by_chain_id(oracle.source_chain_id)
        target = await self.chains.find_by_chain_id(oracle.target_chain_id)
        if not source or not target:
            raise ChainNotSupportedError()

        oracle.web2_info.id = new_id()
        oracle.web2_info_id = oracle.web2_info.id
        oracle.id = new_id()
        entity.oracle_info_id = oracle.id
        entity.id = entity.id or new_id()
        entity.status = int(JobStatus.CREATED)

        try:
            self.session.add(oracle.web2_info)
            self.session.add(oracle)
            self.session.add(entity)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        await self.session.refresh(entity)

        logger.info("dapi %s created: %s -> %s", entity.id, source.chain_id, target.chain_id)
        return entity

    # -----------------------
    # deployment
    # -----------------------

    async def _resolve_chains(self, dapi: Dapi) -> tuple[Chain, Chain]:
        source = await self.chains.find_by_chain_id(dapi.oracle_info.source_chain_id)
        target = await self.chains.find_by_chain_id(dapi.oracle_info.target_chain_id)
        if not source or not target:
            raise ChainNotSupportedError()
        return source, target

    def _runtime_config(self, dapi: Dapi, target: Chain) -> RuntimeConfig:
        web2 = dapi.oracle_info.web2_info
        return RuntimeConfig(
            target_chain_rpc=target.http_provider,
            anchor_contract_addr=dapi.oracle_info.anchor,
            submit_key=None,
            web2_api_url_prefix=web2.uri,
            js_engine_code_hash=self.cfg.js_engine_code_hash,
            method=web2.method.upper() if web2.method else None,
            auth_type=web2.auth_type,
            api_key=self.cfg.runtime_api_key,
        )

    async def _deploy_anchor(self, dapi: Dapi, target: Chain) -> None:
        if target.type != ChainType.EVM or dapi.oracle_info.anchor:
            return
        artifact = self.deployer.load_artifact(self.cfg.phala_anchor_path)
        deployed = await self.deployer.deploy_with_http_provider(
            target.http_provider,
            self.cfg.sponsor_mnemonic,
            artifact.abi,
            artifact.bytecode,
            [dapi.wallet_address, self.cfg.protocol_address, self.cfg.anchor_config_blob],
        )
        dapi.oracle_info.anchor = deployed.address
        await self.dapis.update(dapi)
        logger.info("dapi %s anchor deployed on chain %s: %s", dapi.id, target.chain_id, deployed.address)

    async def _deploy_runtime(self, dapi: Dapi, source: Chain, artifact_path: str, init_config: Dict[str, Any] | None = None) -> None:
        if dapi.oracle_info.address:
            return
        dapi.oracle_info.address = await self.deployer.deploy_runtime_contract(
            self.cfg.sponsor_mnemonic,
            source.cluster_id,
            source.ws_provider,
            source.pruntime,
            artifact_path,
            init_config,
        )
        await self.dapis.update(dapi)
        logger.info("dapi %s druntime deployed: %s", dapi.id, dapi.oracle_info.address)

    async def submit(self, job_id: str, workflow: DeployWorkflow | str | None = None) -> Dapi:
        """
        Deploy and wire the contracts of one dapi.

        Resumable: steps whose result is already persisted (druntime address,
        anchor address, reached status) are skipped, so calling this again
        after a failure continues where the last run stopped. The workflow of
        the first run is stored on the dapi; a resume keeps it and refuses a
        different one. Concurrent calls for the same dapi run one after the
        other, and the later one sees what the earlier one stored.
        """
        requested = DeployWorkflow(workflow) if workflow else None

        async with _job_lock(job_id):
            dapi = await self.dapis.find(job_id, fresh=True)
            if not dapi:
                raise JobNotFoundError(job_id)

            if is_reached(dapi.status, JobStatus.DONE):
                logger.info("dapi %s already done, nothing to deploy", job_id)
                return dapi

            stored = DeployWorkflow(dapi.workflow) if dapi.workflow else None
            if stored and requested and requested != stored:
                raise UnsupportedWorkflowError(
                    f"dapi {job_id} was started with {stored.value}, cannot resume with {requested.value}"
                )
            chosen = requested or stored or DeployWorkflow(self.cfg.deploy_workflow)

            source, target = await self._resolve_chains(dapi)
            if source.type != ChainType.PHALA:
                raise UnsupportedWorkflowError(f"source chain type not supported: {source.type.value}")

            if not stored:
                dapi.workflow = chosen.value
                dapi = await self.dapis.update(dapi)

            return await self._run(dapi, chosen, source, target)

    async def _run(self, dapi: Dapi, workflow: DeployWorkflow, source: Chain, target: Chain) -> Dapi:
        logger.info("dapi %s: running %s workflow", dapi.id, workflow.value)
        if workflow == DeployWorkflow.INIT_CONFIG:
            return await self._submit_init_config(dapi, source, target)
        return await self._submit_deploy_then_configure(dapi, source, target)

    async def _submit_deploy_then_configure(self, dapi: Dapi, source: Chain, target: Chain) -> Dapi:
        await self._advance(dapi, JobStatus.DEPLOYING_SAAS3_DRUNTIME)
        await self._deploy_runtime(dapi, source, self.cfg.druntime_fat_v2_path)

        await self._advance(dapi, JobStatus.DEPLOYING_SAAS3_TRANSACTOR)
        await self._deploy_anchor(dapi, target)

        await self._advance(dapi, JobStatus.CONFIGURING_SAAS3_DRUNTIME)
        await self.deployer.configure_runtime_contract(
            self.cfg.sponsor_mnemonic,
            source.ws_provider,
            source.pruntime,
            self.cfg.druntime_fat_v2_path,
            CONFIG_ACTION,
            self._runtime_config(dapi, target).model_dump(),
            contract_id=dapi.oracle_info.address,
        )

        return await self._finish(dapi)

    async def _submit_init_config(self, dapi: Dapi, source: Chain, target: Chain) -> Dapi:
        await self._advance(dapi, JobStatus.DEPLOYING_SAAS3_DRUNTIME)
        await self._deploy_anchor(dapi, target)

        init_config = self._runtime_config(dapi, target).model_dump(include=INIT_CONFIG_FIELDS)
        await self._deploy_runtime(dapi, source, self.cfg.druntime_fat_path, init_config)

        return await self._finish(dapi)

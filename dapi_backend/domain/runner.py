from __future__ import annotations

import logging

from dapi_backend.core.broadcast import StatusBroadcaster
from dapi_backend.db.models import Dapi
from dapi_backend.db.session import AsyncSessionLocal
from dapi_backend.deploy.base import DeploymentClient
from dapi_backend.domain.dapi_service import DapiService, DeployWorkflow

logger = logging.getLogger(__name__)


async def run_submission(
    job_id: str,
    *,
    deployer: DeploymentClient,
    broadcaster: StatusBroadcaster,
    workflow: DeployWorkflow | str | None = None,
) -> Dapi:
    """Run a submission on its own session, outside the request that created the dapi."""
    async with AsyncSessionLocal() as session:
        service = DapiService(session, deployer=deployer, broadcaster=broadcaster)
        try:
            return await service.submit(job_id, workflow)
        except Exception:
            # job stays at its last persisted status
            logger.exception("dapi %s: deployment failed", job_id)
            raise

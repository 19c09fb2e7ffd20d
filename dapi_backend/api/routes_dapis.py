from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from dapi_backend.api.deps import get_broadcaster, get_deployer
from dapi_backend.api.schemas_dapis import DapiCreateRequest, DapiPage, DapiResponse
from dapi_backend.api.schemas_events import StatusNameResponse
from dapi_backend.core.broadcast import StatusBroadcaster
from dapi_backend.core.errors import ChainNotSupportedError, JobNotFoundError, UnsupportedWorkflowError
from dapi_backend.db.models import Dapi, JobStatus, OracleInfo, Web2Info
from dapi_backend.db.session import get_session
from dapi_backend.deploy.base import DeploymentClient
from dapi_backend.domain.dapi_service import DapiService, DeployWorkflow
from dapi_backend.domain.runner import run_submission
from dapi_backend.domain.state_machine import TransitionError


router = APIRouter(prefix="/dapis", tags=["dapis"])


def get_dapi_service(
    session: AsyncSession = Depends(get_session),
    deployer: DeploymentClient = Depends(get_deployer),
    broadcaster: StatusBroadcaster = Depends(get_broadcaster),
) -> DapiService:
    return DapiService(session, deployer=deployer, broadcaster=broadcaster)


def _to_entity(req: DapiCreateRequest) -> Dapi:
    web2 = req.oracle_info.web2_info
    return Dapi(
        name=req.name,
        description=req.description,
        wallet_address=req.wallet_address,
        user_id=req.user_id,
        oracle_info=OracleInfo(
            source_chain_id=req.oracle_info.source_chain_id,
            target_chain_id=req.oracle_info.target_chain_id,
            web2_info=Web2Info(uri=web2.uri, method=web2.method, auth_type=web2.auth_type),
        ),
    )


@router.get("", response_model=DapiPage)
async def page_dapis(
    index: int = Query(1, ge=1),
    size: int = Query(10, ge=1, le=100),
    service: DapiService = Depends(get_dapi_service),
):
    page = await service.dapis.page(index, size)
    page["list"] = [DapiResponse.model_validate(d, from_attributes=True) for d in page["list"]]
    return DapiPage(**page)


@router.get("/all", response_model=list[DapiResponse])
async def list_dapis(service: DapiService = Depends(get_dapi_service)):
    return [DapiResponse.model_validate(d, from_attributes=True) for d in await service.dapis.find_all()]


@router.get("/count")
async def count_dapis(service: DapiService = Depends(get_dapi_service)):
    return {"count": await service.dapis.count()}


@router.get("/status/{n}", response_model=StatusNameResponse)
async def status_name(n: int):
    try:
        return StatusNameResponse(value=JobStatus(n), name=DapiService.status(n))
    except ValueError:
        raise HTTPException(status_code=404, detail=f"unknown status: {n}")


@router.post("/openapi/check")
async def check_openapi(document: Dict[str, Any] = Body(...), service: DapiService = Depends(get_dapi_service)):
    return await service.check_openapi(document)


@router.get("/{dapi_id}", response_model=DapiResponse)
async def get_dapi(dapi_id: str, service: DapiService = Depends(get_dapi_service)):
    dapi = await service.dapis.find(dapi_id)
    if not dapi:
        raise HTTPException(status_code=404, detail="dapi not found")
    return DapiResponse.model_validate(dapi, from_attributes=True)


@router.post("", response_model=DapiResponse, status_code=201)
async def submit_dapi(
    req: DapiCreateRequest,
    background_tasks: BackgroundTasks,
    workflow: DeployWorkflow | None = None,
    service: DapiService = Depends(get_dapi_service),
):
    """
    Store the dapi, then deploy its contracts in the background.
    Progress is pushed on the `status` channel (/ws).
    """
    try:
        dapi = await service.save(_to_entity(req))
    except ChainNotSupportedError as e:
        raise HTTPException(status_code=400, detail=str(e))

    response = DapiResponse.model_validate(dapi, from_attributes=True)
    background_tasks.add_task(
        run_submission,
        dapi.id,
        deployer=service.deployer,
        broadcaster=service.broadcaster,
        workflow=workflow,
    )
    return response


@router.post("/{dapi_id}/run", response_model=DapiResponse)
async def run_dapi(
    dapi_id: str,
    workflow: DeployWorkflow | None = None,
    service: DapiService = Depends(get_dapi_service),
):
    """
    Run (or resume) the deployment in the request. Already finished dapis are
    returned unchanged; completed steps of a failed run are skipped.
    """
    try:
        dapi = await service.submit(dapi_id, workflow)
    except JobNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ChainNotSupportedError, UnsupportedWorkflowError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return DapiResponse.model_validate(dapi, from_attributes=True)


@router.delete("/{dapi_id}")
async def delete_dapi(dapi_id: str, service: DapiService = Depends(get_dapi_service)):
    if not await service.dapis.delete_by_id(dapi_id):
        raise HTTPException(status_code=404, detail="dapi not found")
    return {"deleted": dapi_id}

from __future__ import annotations
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator


class ContractArtifact(BaseModel):
    abi: List[Dict[str, Any]]
    bytecode: str

    @field_validator("bytecode")
    @classmethod
    def hex_prefixed(cls, v: str) -> str:
        if not v:
            raise ValueError("empty bytecode")
        return v if v.startswith("0x") else f"0x{v}"


class DeployedContract(BaseModel):
    address: str
    tx_hash: Optional[str] = None


class RuntimeConfig(BaseModel):
    """Configuration handed to the druntime contract's `config` action."""
    target_chain_rpc: Optional[str] = None
    anchor_contract_addr: Optional[str] = None
    submit_key: Optional[str] = None
    web2_api_url_prefix: str
    js_engine_code_hash: Optional[str] = None
    method: Optional[str] = None
    auth_type: Optional[str] = None
    api_key: str = ""


class RuntimeDeployRequest(BaseModel):
    mnemonic: str
    cluster_id: str
    ws_endpoint: str
    runtime_endpoint: str
    artifact_path: str
    init_config: Optional[Dict[str, Any]] = None


class RuntimeConfigureRequest(BaseModel):
    mnemonic: str
    ws_endpoint: str
    runtime_endpoint: str
    artifact_path: str
    contract_id: str
    action: str
    config: Dict[str, Any] = Field(default_factory=dict)


class RuntimeDeployResponse(BaseModel):
    contract_id: str

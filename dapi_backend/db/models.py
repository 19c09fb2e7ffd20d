from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum, Integer, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dapi_backend.db.base import Base


def _now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(enum.IntEnum):
    # ordinal doubles as progress / 10
    CREATED = 0
    DEPLOYING_SAAS3_DRUNTIME = 1
    DEPLOYING_SAAS3_TRANSACTOR = 2
    CONFIGURING_SAAS3_DRUNTIME = 3
    DONE = 9


class ChainType(str, enum.Enum):
    EVM = "EVM"
    PHALA = "PHALA"


class Chain(Base):
    __tablename__ = "chains"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    chain_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[ChainType] = mapped_column(Enum(ChainType), nullable=False)

    http_provider: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ws_provider: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cluster_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    pruntime: Mapped[str | None] = mapped_column(String(255), nullable=True)


class Web2Info(Base):
    __tablename__ = "web2_infos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    uri: Mapped[str] = mapped_column(String(1024), nullable=False)
    method: Mapped[str] = mapped_column(String(16), nullable=False, default="get")
    auth_type: Mapped[str | None] = mapped_column(String(32), nullable=True)


class OracleInfo(Base):
    __tablename__ = "oracle_infos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    source_chain_id: Mapped[int] = mapped_column(ForeignKey("chains.chain_id"), nullable=False)
    target_chain_id: Mapped[int] = mapped_column(ForeignKey("chains.chain_id"), nullable=False)

    # runtime (fat) contract on the source chain
    address: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # anchor contract on the target chain
    anchor: Mapped[str | None] = mapped_column(String(128), nullable=True)

    web2_info_id: Mapped[str] = mapped_column(ForeignKey("web2_infos.id"), nullable=False)

    source_chain: Mapped[Chain] = relationship(foreign_keys=[source_chain_id], lazy="selectin")
    target_chain: Mapped[Chain] = relationship(foreign_keys=[target_chain_id], lazy="selectin")
    web2_info: Mapped[Web2Info] = relationship(lazy="selectin")


class Dapi(Base):
    __tablename__ = "dapis"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    wallet_address: Mapped[str] = mapped_column(String(128), nullable=False)

    status: Mapped[int] = mapped_column(Integer, nullable=False, default=JobStatus.CREATED, index=True)
    # set by the first submission, kept across resumes
    workflow: Mapped[str | None] = mapped_column(String(32), nullable=True)

    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    oracle_info_id: Mapped[str] = mapped_column(ForeignKey("oracle_infos.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    oracle_info: Mapped[OracleInfo] = relationship(lazy="selectin")
    user: Mapped[User | None] = relationship(back_populates="dapis")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_now, onupdate=_now, nullable=False)

    wallets: Mapped[list[Wallet]] = relationship(back_populates="user", cascade="all, delete-orphan", lazy="selectin")
    dapis: Mapped[list[Dapi]] = relationship(back_populates="user", lazy="selectin")


class Wallet(Base):
    __tablename__ = "wallets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    address: Mapped[str] = mapped_column(String(128), unique=True, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id"), nullable=False)

    user: Mapped[User] = relationship(back_populates="wallets")

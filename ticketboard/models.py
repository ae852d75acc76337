from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String, Text, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class Ticket(Base):
    __tablename__ = "tickets"

    id: str = Column(String(36), primary_key=True, default=new_id)
    monday_item_id: str = Column(String(64), nullable=False, unique=True, index=True)
    ticket_title: str = Column(String(512), nullable=False)
    ticket_type: str | None = Column(String(255), nullable=True, index=True)
    team_assigned: str | None = Column(String(255), nullable=True)
    status: str = Column(String(64), nullable=False, default="Open")
    priority: str = Column(String(64), nullable=False, default="Medium")
    description: str | None = Column(Text, nullable=True)
    reporter: str | None = Column(String(255), nullable=True)
    assignee: str | None = Column(String(255), nullable=True)
    monday_board_id: str | None = Column(String(64), nullable=True)
    agent_action_summary: str | None = Column(Text, nullable=True)
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class TicketTypeTeamMapping(Base):
    __tablename__ = "ticket_type_team_mapping"

    id: str = Column(String(36), primary_key=True, default=new_id)
    ticket_type: str = Column(String(255), nullable=False, index=True)
    team_name: str = Column(String(255), nullable=False)
    owner_id: str | None = Column(String(255), nullable=True)
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class DeviceLog(Base):
    __tablename__ = "device_logs"

    id: str = Column(String(36), primary_key=True, default=new_id)
    mobile_device_number: str = Column(String(64), nullable=False, index=True)
    log_message: str = Column(Text, nullable=False)
    log_level: str = Column(String(16), nullable=False, default="INFO")
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class EsimProfile(Base):
    __tablename__ = "esim_profiles"

    id: str = Column(String(36), primary_key=True, default=new_id)
    iccid_value: str = Column(String(32), nullable=False, unique=True, index=True)
    qr_image: str = Column(Text, nullable=False, default="")
    activation_code: str = Column(String(512), nullable=False, default="")
    progress_bar_percentage: int = Column(Integer, nullable=False, default=0)
    status: str = Column(String(64), nullable=False, default="")
    smdp_status: str = Column(String(64), nullable=False, default="")
    device_number: str | None = Column(String(64), nullable=True)
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )


class MondayConfig(Base):
    __tablename__ = "monday_config"

    id: str = Column(String(36), primary_key=True, default=new_id)
    webhook_url: str = Column(String(2048), nullable=False)
    api_token: str = Column(String(512), nullable=False)
    board_id: str = Column(String(64), nullable=False)
    created_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: datetime = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

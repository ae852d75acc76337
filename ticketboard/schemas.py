from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator

ShortText = constr(strip_whitespace=True, min_length=1, max_length=255)
TitleText = constr(strip_whitespace=True, min_length=1, max_length=512)
IdentifierText = constr(strip_whitespace=True, min_length=1, max_length=64)


class TicketBase(BaseModel):
    ticket_type: Optional[str] = Field(default=None, max_length=255)
    team_assigned: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    reporter: Optional[str] = Field(default=None, max_length=255)
    assignee: Optional[str] = Field(default=None, max_length=255)
    monday_board_id: Optional[str] = Field(default=None, max_length=64)
    agent_action_summary: Optional[str] = None


class TicketCreate(TicketBase):
    monday_item_id: IdentifierText
    ticket_title: TitleText
    status: ShortText = "Open"
    priority: ShortText = "Medium"


class TicketUpdate(TicketBase):
    ticket_title: Optional[TitleText] = None
    status: Optional[ShortText] = None
    priority: Optional[ShortText] = None


class TicketRead(BaseModel):
    id: str
    monday_item_id: str
    ticket_title: str
    ticket_type: Optional[str]
    team_assigned: Optional[str]
    status: str
    priority: str
    description: Optional[str]
    reporter: Optional[str]
    assignee: Optional[str]
    monday_board_id: Optional[str]
    agent_action_summary: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TicketMappingCreate(BaseModel):
    ticket_type: ShortText
    team_name: ShortText
    owner_id: Optional[str] = Field(default=None, max_length=255)


class TicketMappingUpdate(BaseModel):
    ticket_type: Optional[ShortText] = None
    team_name: Optional[ShortText] = None
    owner_id: Optional[str] = Field(default=None, max_length=255)


class TicketMappingRead(BaseModel):
    id: str
    ticket_type: str
    team_name: str
    owner_id: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeviceLogLevel(str, Enum):
    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"


def _normalize_log_level(value):
    if isinstance(value, str):
        return value.strip().upper()
    return value


class DeviceLogCreate(BaseModel):
    mobile_device_number: IdentifierText
    log_message: constr(strip_whitespace=True, min_length=1)
    log_level: DeviceLogLevel = DeviceLogLevel.INFO

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        return _normalize_log_level(value)


class DeviceLogUpdate(BaseModel):
    mobile_device_number: Optional[IdentifierText] = None
    log_message: Optional[constr(strip_whitespace=True, min_length=1)] = None
    log_level: Optional[DeviceLogLevel] = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value):
        return _normalize_log_level(value)


class DeviceLogRead(BaseModel):
    id: str
    mobile_device_number: str
    log_message: str
    log_level: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EsimProfileCreate(BaseModel):
    iccid_value: constr(strip_whitespace=True, min_length=1, max_length=32)
    qr_image: str = ""
    activation_code: str = Field(default="", max_length=512)
    progress_bar_percentage: int = Field(default=0, ge=0, le=100)
    status: str = Field(default="", max_length=64)
    smdp_status: str = Field(default="", max_length=64)
    device_number: Optional[str] = Field(default=None, max_length=64)


class EsimProfileUpdate(BaseModel):
    iccid_value: Optional[constr(strip_whitespace=True, min_length=1, max_length=32)] = None
    qr_image: Optional[str] = None
    activation_code: Optional[str] = Field(default=None, max_length=512)
    progress_bar_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    status: Optional[str] = Field(default=None, max_length=64)
    smdp_status: Optional[str] = Field(default=None, max_length=64)
    device_number: Optional[str] = Field(default=None, max_length=64)


class EsimProfileRead(BaseModel):
    id: str
    iccid_value: str
    qr_image: str
    activation_code: str
    progress_bar_percentage: int
    status: str
    smdp_status: str
    device_number: Optional[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MondayConfigWrite(BaseModel):
    webhook_url: constr(strip_whitespace=True, min_length=1, max_length=2048)
    api_token: constr(strip_whitespace=True, min_length=1, max_length=512)
    board_id: IdentifierText


class MondayConfigRead(BaseModel):
    id: str
    webhook_url: str
    api_token: str
    board_id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DashboardSummary(BaseModel):
    total_tickets: int
    open_tickets: int
    team_mappings: int
    device_logs: int

from typing import Literal

from pydantic import BaseModel, Field


class ToggleAssignmentRequest(BaseModel):
    participant_id: str


class UnitChangeRequest(BaseModel):
    participant_id: str
    delta: Literal[1, -1]


class UnitCountRequest(BaseModel):
    participant_id: str
    count: int = Field(ge=0)


class SharedRequest(BaseModel):
    shared: bool


class PortionsRequest(BaseModel):
    portions: list[list[str]]


class PortionsResponse(BaseModel):
    item_index: int
    quantity: int
    portions: list[list[str]]


class ItemAssignmentResponse(BaseModel):
    item_index: int
    state: str
    participants: list[str]
    is_shared: bool
    unit_counts: dict[str, int]
    portions: list[list[str]]

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ...domain.entities import Role, TicketStatus

# границы INTEGER в БД: большее значение не дойдёт до драйвера
MAX_ID = 2**63 - 1

Id = Annotated[int, Field(gt=0, le=MAX_ID)]


class Schema(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- auth / users

class LoginReq(Schema):
    # plain string: seeded accounts like admin@local are not RFC-valid
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)

class UserCreate(Schema):
    email: EmailStr
    name: str = Field(min_length=1)
    role: Role
    password: str = Field(min_length=8)

class UserOut(Schema):
    id: int
    email: str
    name: str
    role: Role

class TokenResp(Schema):
    token: str
    user: UserOut


# --- buildings / rooms / beds

class BuildingCreate(Schema):
    name: str = Field(min_length=1)

class RoomCreate(Schema):
    building_id: Id
    floor: int = Field(strict=True, ge=-MAX_ID, le=MAX_ID)
    number: str = Field(min_length=1)

class BedCreate(Schema):
    room_id: Id
    label: str = Field(min_length=1)

class BuildingOut(Schema):
    id: int
    name: str

class RoomOut(Schema):
    id: int
    building_id: int
    floor: int
    number: str

class BedOut(Schema):
    id: int
    room_id: int
    label: str

class RoomTree(RoomOut):
    beds: list[BedOut] = []

class BuildingTree(BuildingOut):
    rooms: list[RoomTree] = []


# --- students

class StudentCreate(Schema):
    user_id: Id
    student_no: str = Field(min_length=1)

class CheckinReq(Schema):
    bed_id: Id

class RoomWithBuilding(RoomOut):
    building: BuildingOut

class BedLocation(BedOut):
    room: RoomWithBuilding

class StudentOut(Schema):
    id: int
    user_id: int
    student_no: str
    bed_id: int | None = None
    user: UserOut
    bed: BedLocation | None = None


# --- tickets

class TicketCreate(Schema):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)

class TicketUpdate(Schema):
    status: TicketStatus

class TicketOut(Schema):
    id: int
    user_id: int
    title: str
    description: str
    status: TicketStatus
    created_at: datetime

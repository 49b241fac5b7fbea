import structlog
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ....domain.entities import Identity, Role
from ....infrastructure.db import get_db
from ....infrastructure.repositories import TicketRepository
from ..authz import get_identity, require_staff
from ..schemas import MAX_ID, TicketCreate, TicketUpdate, TicketOut

logger = structlog.get_logger()

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.get("", response_model=list[TicketOut])
def list_tickets(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    # студент видит только свои заявки, персонал — все
    owner = identity.user_id if identity.role == Role.student else None
    return TicketRepository(db).list(owner_id=owner)


@router.post("", response_model=TicketOut)
def create_ticket(payload: TicketCreate, identity: Identity = Depends(get_identity), db: Session = Depends(get_db)):
    return TicketRepository(db).create(identity.user_id, payload.title, payload.description)


@router.patch("/{ticket_id}", response_model=TicketOut)
def update_ticket(
    payload: TicketUpdate,
    ticket_id: int = Path(gt=0, le=MAX_ID),
    staff: Identity = Depends(require_staff),
    db: Session = Depends(get_db),
):
    # any status may follow any other
    row = TicketRepository(db).set_status(ticket_id, payload.status)
    logger.info("ticket_status_changed", ticket_id=ticket_id, status=payload.status.value, by=staff.user_id)
    return row

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased, selectinload

from .models import UserORM, BuildingORM, RoomORM, BedORM, StudentORM, TicketORM
from ..domain.entities import User, Role, TicketStatus
from ..domain.errors import Conflict, NotFound
from ..application.use_cases.create_user import IUserRepository
from ..application.use_cases.occupancy import IStudentRepository


def to_domain(u: UserORM) -> User:
    return User(id=u.id, email=u.email, name=u.name, role=u.role)


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get(self, user_id: int) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_domain(row) if row else None

    def get_password_hash(self, email: str) -> tuple[User, str] | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return (to_domain(row), row.password_hash) if row else None

    def create(self, email: str, name: str, password_hash: str, role: Role = Role.student) -> User:
        row = UserORM(email=email, name=name, password_hash=password_hash, role=role)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("email_taken")
        self.db.refresh(row)
        return to_domain(row)


class HousingRepository:
    """Buildings, rooms and beds."""

    def __init__(self, db: Session): self.db = db

    def tree(self) -> list[BuildingORM]:
        q = (select(BuildingORM)
             .options(selectinload(BuildingORM.rooms).selectinload(RoomORM.beds))
             .order_by(BuildingORM.id))
        return list(self.db.scalars(q).all())

    def create_building(self, name: str) -> BuildingORM:
        row = BuildingORM(name=name)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row

    def create_room(self, building_id: int, floor: int, number: str) -> RoomORM:
        if self.db.get(BuildingORM, building_id) is None:
            raise NotFound("building_not_found")
        row = RoomORM(building_id=building_id, floor=floor, number=number)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row

    def create_bed(self, room_id: int, label: str) -> BedORM:
        if self.db.get(RoomORM, room_id) is None:
            raise NotFound("room_not_found")
        row = BedORM(room_id=room_id, label=label)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row


def _student_graph():
    return (
        selectinload(StudentORM.user),
        selectinload(StudentORM.bed).selectinload(BedORM.room).selectinload(RoomORM.building),
    )


class StudentRepository(IStudentRepository):
    def __init__(self, db: Session): self.db = db

    def list(self) -> list[StudentORM]:
        q = select(StudentORM).options(*_student_graph()).order_by(StudentORM.id)
        return list(self.db.scalars(q).all())

    def get(self, student_id: int) -> StudentORM | None:
        q = select(StudentORM).options(*_student_graph()).where(StudentORM.id == student_id)
        return self.db.scalars(q).first()

    def exists(self, student_id: int) -> bool:
        return self.db.get(StudentORM, student_id) is not None

    def create(self, user_id: int, student_no: str) -> StudentORM:
        if self.db.get(UserORM, user_id) is None:
            raise NotFound("user_not_found")
        taken = (self.db.query(StudentORM.id)
                 .filter((StudentORM.user_id == user_id) | (StudentORM.student_no == student_no))
                 .first())
        if taken:
            raise Conflict("student_exists")
        row = StudentORM(user_id=user_id, student_no=student_no)
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("student_exists")
        return self.get(row.id)

    def bed_exists(self, bed_id: int) -> bool:
        return self.db.get(BedORM, bed_id) is not None

    def bed_holder(self, bed_id: int) -> int | None:
        return self.db.scalar(select(StudentORM.id).where(StudentORM.bed_id == bed_id))

    def assign_bed(self, student_id: int, bed_id: int) -> bool:
        """Atomically give the bed to the student if nobody holds it.

        Returns False when another writer got the bed first.
        """
        holder = aliased(StudentORM)
        stmt = (
            update(StudentORM)
            .where(StudentORM.id == student_id)
            .where(~select(holder.id).where(holder.bed_id == bed_id).exists())
            .values(bed_id=bed_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except IntegrityError:
            # unique(students.bed_id) caught a concurrent winner
            self.db.rollback()
            return False
        return result.rowcount == 1

    def clear_bed(self, student_id: int) -> None:
        stmt = (
            update(StudentORM)
            .where(StudentORM.id == student_id)
            .values(bed_id=None)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(stmt)
        self.db.commit()


class TicketRepository:
    def __init__(self, db: Session): self.db = db

    def list(self, owner_id: int | None = None) -> list[TicketORM]:
        q = select(TicketORM)
        if owner_id is not None:
            q = q.where(TicketORM.user_id == owner_id)
        q = q.order_by(TicketORM.created_at.desc(), TicketORM.id.desc())
        return list(self.db.scalars(q).all())

    def create(self, user_id: int, title: str, description: str) -> TicketORM:
        row = TicketORM(user_id=user_id, title=title, description=description, status=TicketStatus.open)
        self.db.add(row); self.db.commit(); self.db.refresh(row)
        return row

    def set_status(self, ticket_id: int, status: TicketStatus) -> TicketORM:
        row = self.db.get(TicketORM, ticket_id)
        if row is None:
            raise NotFound("ticket_not_found")
        row.status = status
        self.db.commit(); self.db.refresh(row)
        return row

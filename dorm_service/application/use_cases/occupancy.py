from ...domain.errors import Conflict, NotFound


class IStudentRepository:
    def exists(self, student_id: int) -> bool: ...
    def bed_exists(self, bed_id: int) -> bool: ...
    def bed_holder(self, bed_id: int) -> int | None: ...
    def assign_bed(self, student_id: int, bed_id: int) -> bool: ...
    def clear_bed(self, student_id: int) -> None: ...


class CheckIn:
    """Puts a student into a bed; a bed holds at most one student."""

    def __init__(self, repo: IStudentRepository):
        self.repo = repo

    def execute(self, student_id: int, bed_id: int) -> None:
        if not self.repo.exists(student_id):
            raise NotFound("student_not_found")
        if not self.repo.bed_exists(bed_id):
            raise NotFound("bed_not_found")
        if self.repo.bed_holder(bed_id) is not None:
            raise Conflict("bed_occupied")
        # the read above is only a fast path; the write decides
        if not self.repo.assign_bed(student_id, bed_id):
            raise Conflict("bed_occupied")


class CheckOut:
    def __init__(self, repo: IStudentRepository):
        self.repo = repo

    def execute(self, student_id: int) -> None:
        if not self.repo.exists(student_id):
            raise NotFound("student_not_found")
        self.repo.clear_bed(student_id)

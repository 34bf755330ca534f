from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from attendance_rollup.models.student import Student


class StudentRepository:
    """Student directory backed by the students table."""

    def __init__(self, db: Session):
        self.db = db

    def all_student_ids(self) -> List[str]:
        rows = self.db.query(Student.id).filter(
            Student.is_active == True  # noqa: E712
        ).order_by(Student.id).all()
        return [row[0] for row in rows]

    def student_ids_in_group(self, group_id: str) -> List[str]:
        rows = self.db.query(Student.id).filter(
            Student.is_active == True,  # noqa: E712
            Student.group_id == group_id
        ).order_by(Student.id).all()
        return [row[0] for row in rows]

    def group_of(self, student_id: str) -> Optional[str]:
        student = self.db.get(Student, student_id)
        return student.group_id if student else None

    def exists(self, student_id: str) -> bool:
        return self.db.get(Student, student_id) is not None

    def student_ids_by_last_name(self, last_name: str) -> List[str]:
        """Case-insensitive exact match on last name."""
        rows = self.db.query(Student.id).filter(
            func.lower(Student.last_name) == last_name.lower()
        ).order_by(Student.id).all()
        return [row[0] for row in rows]

    def add(self, student: Student) -> Student:
        self.db.add(student)
        self.db.commit()
        return student

from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime

from attendance_rollup.core.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(String(64), primary_key=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    group_id = Column(String(64), nullable=True, index=True)  # class / homeroom
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

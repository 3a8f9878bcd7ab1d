from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.database.core import Base


# Column names match the table layout of existing attendance databases
# (records / when / surf_id / e_mail), so old files can be reused as-is
class AttendanceRecord(Base):
    __tablename__ = "records"
    id: Mapped[Optional[int]] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column("when", DateTime, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False, default="")
    external_id: Mapped[str] = mapped_column("surf_id", String, nullable=False, default="")
    email: Mapped[str] = mapped_column("e_mail", String, nullable=False, default="")

    def __repr__(self) -> str:
        return f"AttendanceRecord(id={self.id!r}, timestamp={self.timestamp!r}, external_id={self.external_id!r})"

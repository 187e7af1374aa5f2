from sqlalchemy import CheckConstraint, Column, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class BookedSlots(Base):
    __tablename__ = 'booked_slots'
    __table_args__ = (
        UniqueConstraint('date', 'time', name='uq_booked_slots_date_time'),
    )

    id = Column(Integer, primary_key=True)
    date = Column(Text, nullable=False, index=True)
    time = Column(Text, nullable=False)
    name = Column(Text)
    phone = Column(Text)
    service = Column(Text)
    appointment_id = Column(Text, index=True)
    booked_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))


class WorkingDays(Base):
    __tablename__ = 'working_days'
    __table_args__ = (
        CheckConstraint("status IN ('working', 'off')", name='ck_working_days_status'),
    )

    date = Column(Text, primary_key=True)
    status = Column(Text, nullable=False)

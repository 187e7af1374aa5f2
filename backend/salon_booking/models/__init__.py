from .tables import Base, BookedSlots, WorkingDays

__all__ = ["Base", "BookedSlots", "WorkingDays"]

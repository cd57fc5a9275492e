"""clinisched records."""

import pkgutil
from pathlib import Path

from .appointments import AppointmentRecord
from .schedule_items import ScheduleRecord

__all__ = ["AppointmentRecord", "ScheduleRecord", "load_all_models"]


def load_all_models() -> None:
    """Load all records from this folder."""
    package_dir = Path(__file__).resolve().parent
    modules = pkgutil.walk_packages(
        path=[str(package_dir)],
        prefix="clinisched.db.models.",
    )
    for module in modules:
        __import__(module.name)

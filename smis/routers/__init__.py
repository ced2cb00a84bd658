from . import health, auth, students, teachers, hod, finance, admin
from . import activities, notifications, courses

__all__ = [
    "health",
    "auth",
    "students",
    "teachers",
    "hod",
    "finance",
    "admin",
    "activities",
    "notifications",
    "courses",
]

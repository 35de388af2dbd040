from app.models.activity_log import ActivityLog  # noqa: F401
from app.models.class_group import ClassGroup, class_group_students  # noqa: F401
from app.models.classroom import Classroom, ClassroomType  # noqa: F401
from app.models.institution_settings import InstitutionSettings  # noqa: F401
from app.models.notification import Notification, NotificationEvent, NotificationType  # noqa: F401
from app.models.reservation import Reservation, ReservationStatus  # noqa: F401
from app.models.timetable_entry import TimetableEntry, Weekday  # noqa: F401
from app.models.user import User, UserRole  # noqa: F401

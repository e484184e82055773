# Garante o registro de TODAS as models no mesmo registry
from app.db.base_class import Base # noqa
from app.models.agenda import Agenda # noqa
from app.models.appointment import Appointment # noqa
from app.models.audit_log import AuditLog # noqa
from app.models.schedule import ScheduleOverride, ScheduleTemplate # noqa
from app.models.waitlist import WaitlistEntry # noqa

# IMPORTS com efeito colateral (não remova)
from app.models.user import User # noqa

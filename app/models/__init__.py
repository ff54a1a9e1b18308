from .activity import ActivityLog
from .baby import Baby, BabyCreate, BabyUpdate, BabyWithRole
from .change import ChangeEvent
from .collaboration import Collaborator, CollaboratorRoleUpdate, CollaboratorStatus, CurrentUser, Role
from .diaper import Diaper, DiaperCreate, DiaperUpdate
from .feeding import Feeding, FeedingCreate, FeedingUpdate
from .health import Health, HealthCreate, HealthUpdate
from .invitation import AcceptResult, Invitation, InvitationCreate, InvitationDetails, InvitationStatus
from .sleep import Sleep, SleepCreate, SleepUpdate
from .stats import BabyStats, RecordsExport

__all__ = [
    "ActivityLog",
    "Baby", "BabyCreate", "BabyUpdate", "BabyWithRole",
    "ChangeEvent",
    "Collaborator", "CollaboratorRoleUpdate", "CollaboratorStatus", "CurrentUser", "Role",
    "Diaper", "DiaperCreate", "DiaperUpdate",
    "Feeding", "FeedingCreate", "FeedingUpdate",
    "Health", "HealthCreate", "HealthUpdate",
    "AcceptResult", "Invitation", "InvitationCreate", "InvitationDetails", "InvitationStatus",
    "Sleep", "SleepCreate", "SleepUpdate",
    "BabyStats", "RecordsExport",
]

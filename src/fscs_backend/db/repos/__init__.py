"""Repository layer.

Each repository runs against a connection or a transaction and keeps to
persistence and query shaping; authorization and commits live elsewhere.
"""

from fscs_backend.db.repos.abmeldungen import AbmeldungRepository
from fscs_backend.db.repos.antrag_tops import AntragTopRepository
from fscs_backend.db.repos.antraege import AntragDetails, AntragRepository
from fscs_backend.db.repos.attachments import AttachmentRepository
from fscs_backend.db.repos.base import BaseRepository
from fscs_backend.db.repos.door_state import DoorStateRepository
from fscs_backend.db.repos.legislative_periods import LegislativePeriodRepository
from fscs_backend.db.repos.persons import PersonRepository
from fscs_backend.db.repos.roles import RoleAssignmentRepository, RoleRepository
from fscs_backend.db.repos.sitzungen import SitzungRepository
from fscs_backend.db.repos.templates import TemplateRepository
from fscs_backend.db.repos.tops import TopRepository

__all__ = [
    "AbmeldungRepository",
    "AntragDetails",
    "AntragRepository",
    "AntragTopRepository",
    "AttachmentRepository",
    "BaseRepository",
    "DoorStateRepository",
    "LegislativePeriodRepository",
    "PersonRepository",
    "RoleAssignmentRepository",
    "RoleRepository",
    "SitzungRepository",
    "TemplateRepository",
    "TopRepository",
]

from fscs_backend.services.antrag_service import ensure_can_modify_antrag
from fscs_backend.services.person_service import (
    person_for_identity,
    provision_person_for_identity,
)
from fscs_backend.services.sitzung_service import (
    SitzungWithTops,
    TopWithAntraege,
    abmeldungen_for_sitzung,
    sitzung_with_tops,
    sitzungen_after_with_tops,
    tops_with_antraege,
)
from fscs_backend.services.template_service import render_sitzung_document

__all__ = [
    "SitzungWithTops",
    "TopWithAntraege",
    "abmeldungen_for_sitzung",
    "ensure_can_modify_antrag",
    "person_for_identity",
    "provision_person_for_identity",
    "render_sitzung_document",
    "sitzung_with_tops",
    "sitzungen_after_with_tops",
    "tops_with_antraege",
]

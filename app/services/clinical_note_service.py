"""
Clinical note recorder.
"""
import logging
from datetime import datetime

from app.errors import ValidationError
from app.models import ClinicalNote

logger = logging.getLogger(__name__)


def append_note(session, patient_id, text, practitioner_id=None):
    """Add a timestamped note to the patient's history. Does not commit."""
    if text is None or not str(text).strip():
        raise ValidationError('O texto da evolução é obrigatório.')

    note = ClinicalNote(
        text=str(text).strip(),
        patient_id=patient_id,
        practitioner_id=practitioner_id,
        recorded_at=datetime.utcnow(),
    )
    session.add(note)
    session.flush()
    return note

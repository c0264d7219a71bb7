"""
Notes Repository - job notes and their file attachments.

Attachments are stored on disk under {upload_folder}/notes/{note_id}/.
"""

import os
import uuid
import shutil
import logging
from datetime import datetime
from typing import List, Optional, Dict
from sqlalchemy.orm import Session

from database.models import Job, JobNote, JobNoteAttachment
from services.event_logger import EventLogger

logger = logging.getLogger(__name__)

PARTNER_VISIBLE = ('partner', 'all')


class NotesRepository:
    """Repository for job notes and attachments."""

    def __init__(self, session: Session, upload_folder: str = 'uploads'):
        self.session = session
        self.upload_folder = upload_folder
        self.events = EventLogger(session)

    def _note_dir(self, note_id: str) -> str:
        return os.path.join(self.upload_folder, 'notes', note_id)

    def list_notes(self, job_id: str, partner_view: bool = False) -> List[Dict]:
        """Notes for a job, newest first. The partner view omits internal notes."""
        query = self.session.query(JobNote).filter(JobNote.job_id == job_id)
        if partner_view:
            query = query.filter(JobNote.visibility.in_(PARTNER_VISIBLE))
        return [n.to_dict() for n in query.order_by(JobNote.created_at.desc()).all()]

    def get_note(self, job_id: str, note_id: str) -> Optional[JobNote]:
        return self.session.query(JobNote).filter(
            JobNote.id == note_id,
            JobNote.job_id == job_id
        ).first()

    def create_note(self, job_id: str, data: Dict, author_type: str = 'staff') -> Optional[Dict]:
        job = self.session.get(Job, job_id)
        if not job:
            return None

        note = JobNote(
            job=job,
            content=data['content'].strip(),
            visibility=data.get('visibility') or 'internal',
            author_name=data.get('author_name'),
            author_type=author_type
        )
        self.session.add(note)
        self.session.flush()

        self.events.log('job', job.id, 'NOTE_ADDED',
                        description=f"{author_type.capitalize()} note added ({note.visibility})",
                        metadata={'note_id': note.id})
        return note.to_dict()

    def update_note(self, job_id: str, note_id: str, data: Dict) -> Optional[Dict]:
        note = self.get_note(job_id, note_id)
        if not note:
            return None
        for key in ('content', 'visibility', 'author_name'):
            if key in data:
                setattr(note, key, data[key])
        note.updated_at = datetime.utcnow()
        self.session.flush()
        return note.to_dict()

    def delete_note(self, job_id: str, note_id: str) -> bool:
        note = self.get_note(job_id, note_id)
        if not note:
            return False
        self.session.delete(note)
        note_dir = self._note_dir(note_id)
        if os.path.isdir(note_dir):
            shutil.rmtree(note_dir, ignore_errors=True)
        return True

    # =========================================================================
    # ATTACHMENTS
    # =========================================================================

    def list_attachments(self, note_id: str) -> Optional[List[Dict]]:
        note = self.session.get(JobNote, note_id)
        if not note:
            return None
        return [a.to_dict() for a in note.attachments]

    def get_attachment(self, note_id: str, attachment_id: str) -> Optional[JobNoteAttachment]:
        return self.session.query(JobNoteAttachment).filter(
            JobNoteAttachment.id == attachment_id,
            JobNoteAttachment.note_id == note_id
        ).first()

    def add_attachment(self, note_id: str, file, safe_filename: str) -> Optional[Dict]:
        """
        Save an uploaded file for a note.

        Args:
            note_id: Note the file belongs to
            file: werkzeug FileStorage (already validated)
            safe_filename: Sanitised original file name
        """
        note = self.session.get(JobNote, note_id)
        if not note:
            return None

        note_dir = self._note_dir(note_id)
        os.makedirs(note_dir, exist_ok=True)
        stored_name = f"{uuid.uuid4().hex[:8]}_{safe_filename}"
        stored_path = os.path.join(note_dir, stored_name)
        file.save(stored_path)

        attachment = JobNoteAttachment(
            note_id=note.id,
            file_name=safe_filename,
            stored_path=stored_path,
            mime_type=file.mimetype,
            file_size=os.path.getsize(stored_path)
        )
        note.attachments.append(attachment)
        self.session.flush()
        logger.info(f"Stored attachment {safe_filename} for note {note_id}")
        return attachment.to_dict()

    def delete_attachment(self, note_id: str, attachment_id: str) -> bool:
        attachment = self.get_attachment(note_id, attachment_id)
        if not attachment:
            return False
        if attachment.stored_path and os.path.exists(attachment.stored_path):
            os.remove(attachment.stored_path)
        self.session.delete(attachment)
        return True

"""
Contact Repository
==================

Persistence for contact form submissions.
"""

from ..database.connection import DatabaseConnection
from ..database.models import ContactForm, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class ContactRepository:
    """Repository for contact_forms rows."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component("contact_repository")

    def save(self, form: ContactForm) -> int:
        """Store a submission.

        Returns:
            Row ID

        Raises:
            DatabaseError: If database operation fails
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO contact_forms (name, email, subject, message, ip_address, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        form.name,
                        form.email,
                        form.subject,
                        form.message,
                        form.ip_address,
                        to_db_timestamp(form.created_at or utc_now()),
                    ),
                )
                conn.commit()
                return cursor.lastrowid
        except Exception as e:
            raise DatabaseError(
                f"Failed to save contact form: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def count(self) -> int:
        row = self.db.execute_one("SELECT COUNT(*) AS total FROM contact_forms")
        return row["total"] if row else 0

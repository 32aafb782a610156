"""Repositories for chats (with their messages) and uploaded files."""

import logging
from datetime import datetime
from typing import List, Optional
import uuid
from sqlalchemy.orm import Session
from sqlalchemy import desc

from learnplan.models.chat import Chat, Message, MessageRole, Upload
from learnplan.models.constants import CHAT_TITLE_MAX_LENGTH
from learnplan.database.models import ChatDB, MessageDB, PlanDB, UploadDB, enum_to_value

logger = logging.getLogger(__name__)


class ChatRepository:
    """Repository for chats and their messages and uploads."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, chat_id: str) -> Optional[Chat]:
        """Get chat by ID for a specific user."""
        chat_db = self.db.query(ChatDB).filter(
            ChatDB.id == chat_id,
            ChatDB.user_id == user_id,
        ).first()
        return chat_db.to_pydantic() if chat_db else None

    def get_all(self, user_id: str) -> List[Chat]:
        """Get all chats for a user, most recently active first."""
        chats_db = (
            self.db.query(ChatDB)
            .filter(ChatDB.user_id == user_id)
            .order_by(desc(ChatDB.updated_at))
            .all()
        )
        return [chat_db.to_pydantic() for chat_db in chats_db]

    def create(self, user_id: str, title: str) -> Chat:
        """Create an empty chat."""
        try:
            now = datetime.utcnow()
            chat_db = ChatDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                title=title,
                created_at=now,
                updated_at=now,
            )
            self.db.add(chat_db)
            self.db.commit()
            self.db.refresh(chat_db)
            logger.debug(f"Created chat {chat_db.id} for user {user_id}")
            return chat_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create chat for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def add_message(self, chat_id: str, role: MessageRole, content: str) -> Message:
        """Append a message and touch the chat's updated_at."""
        try:
            now = datetime.utcnow()
            message_db = MessageDB(
                id=str(uuid.uuid4()),
                chat_id=chat_id,
                role=enum_to_value(role),
                content=content,
                created_at=now,
            )
            self.db.add(message_db)
            self.db.query(ChatDB).filter(ChatDB.id == chat_id).update(
                {ChatDB.updated_at: now}, synchronize_session=False
            )
            self.db.commit()
            self.db.refresh(message_db)
            return message_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add message to chat {chat_id}: {type(e).__name__}: {str(e)}")
            raise

    def get_messages(self, chat_id: str) -> List[Message]:
        """Get a chat's messages, oldest first."""
        messages_db = (
            self.db.query(MessageDB)
            .filter(MessageDB.chat_id == chat_id)
            .order_by(MessageDB.created_at)
            .all()
        )
        return [message_db.to_pydantic() for message_db in messages_db]

    def get_recent_messages(self, chat_id: str, limit: int) -> List[Message]:
        """Get the last `limit` messages of a chat, oldest first."""
        messages_db = (
            self.db.query(MessageDB)
            .filter(MessageDB.chat_id == chat_id)
            .order_by(desc(MessageDB.created_at))
            .limit(limit)
            .all()
        )
        return [message_db.to_pydantic() for message_db in reversed(messages_db)]

    def add_upload(
        self,
        user_id: str,
        chat_id: Optional[str],
        file_name: str,
        file_type: str,
        file_size: int,
        storage_id: str,
    ) -> Upload:
        """Record metadata for a stored attachment."""
        try:
            upload_db = UploadDB(
                id=str(uuid.uuid4()),
                user_id=user_id,
                chat_id=chat_id,
                file_name=file_name,
                file_type=file_type,
                file_size=file_size,
                storage_id=storage_id,
                created_at=datetime.utcnow(),
            )
            self.db.add(upload_db)
            self.db.commit()
            self.db.refresh(upload_db)
            logger.debug(f"Stored upload {upload_db.id} ({file_type}, {file_size} bytes)")
            return upload_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record upload for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def get_uploads(self, chat_id: str) -> List[Upload]:
        uploads_db = (
            self.db.query(UploadDB)
            .filter(UploadDB.chat_id == chat_id)
            .order_by(UploadDB.created_at)
            .all()
        )
        return [upload_db.to_pydantic() for upload_db in uploads_db]

    def delete(self, user_id: str, chat_id: str) -> bool:
        """Delete a chat and its messages.

        Uploads and plans made from the chat are kept and detached from it.
        """
        chat_db = self.db.query(ChatDB).filter(
            ChatDB.id == chat_id,
            ChatDB.user_id == user_id,
        ).first()
        if not chat_db:
            return False
        try:
            self.db.query(MessageDB).filter(MessageDB.chat_id == chat_id).delete(synchronize_session=False)
            self.db.query(UploadDB).filter(UploadDB.chat_id == chat_id).update(
                {UploadDB.chat_id: None}, synchronize_session=False
            )
            self.db.query(PlanDB).filter(PlanDB.chat_id == chat_id).update(
                {PlanDB.chat_id: None}, synchronize_session=False
            )
            self.db.delete(chat_db)
            self.db.commit()
            logger.debug(f"Deleted chat {chat_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete chat {chat_id}: {type(e).__name__}: {str(e)}")
            raise


class UploadRepository:
    """Repository for a user's uploaded files (metadata only)."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str, upload_id: str) -> Optional[Upload]:
        """Get an upload by ID for a specific user."""
        upload_db = self.db.query(UploadDB).filter(
            UploadDB.id == upload_id,
            UploadDB.user_id == user_id,
        ).first()
        return upload_db.to_pydantic() if upload_db else None

    def get_all(self, user_id: str) -> List[Upload]:
        """Get all of a user's uploads, newest first."""
        uploads_db = (
            self.db.query(UploadDB)
            .filter(UploadDB.user_id == user_id)
            .order_by(desc(UploadDB.created_at))
            .all()
        )
        return [upload_db.to_pydantic() for upload_db in uploads_db]

    def delete(self, user_id: str, upload_id: str) -> Optional[Upload]:
        """Delete an upload's metadata. Returns the deleted upload, or None if missing or not owned."""
        upload_db = self.db.query(UploadDB).filter(
            UploadDB.id == upload_id,
            UploadDB.user_id == user_id,
        ).first()
        if not upload_db:
            return None
        try:
            upload = upload_db.to_pydantic()
            self.db.delete(upload_db)
            self.db.commit()
            logger.debug(f"Deleted upload {upload_id}")
            return upload
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete upload {upload_id}: {type(e).__name__}: {str(e)}")
            raise


def chat_title_from_question(question: str, max_length: int = CHAT_TITLE_MAX_LENGTH) -> str:
    """Title for a new chat: the first question, truncated with "..."."""
    if len(question) > max_length:
        return question[:max_length] + "..."
    return question

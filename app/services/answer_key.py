"""Answer key management service."""

import logging
from pathlib import Path

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.core.storage import ANSWER_KEY_CATEGORY, ANSWER_KEY_PREFIX, FileStorage, stored_file_name
from app.core.validators import file_extension
from app.models.answer_key import AnswerKey
from app.models.base import utcnow
from app.models.student import PostCode
from app.schemas.answer_key import AnswerKeyPublishAllResult, AnswerKeyResponse

logger = logging.getLogger(__name__)


class AnswerKeyService:
    """One answer key per post; re-uploading replaces the previous one."""

    def __init__(self, db: Session, storage: FileStorage | None = None):
        self.db = db
        self.storage = storage or FileStorage()

    def find(self, post_code: PostCode) -> AnswerKey | None:
        result = self.db.execute(select(AnswerKey).where(AnswerKey.post_code == post_code))
        return result.scalar_one_or_none()

    def get(self, post_code: PostCode) -> AnswerKey:
        answer_key = self.find(post_code)
        if not answer_key:
            raise NotFoundError("Answer key", post_code.value)
        return answer_key

    def upload(
        self,
        post_code: PostCode,
        filename: str,
        content: bytes,
        publish: bool = False,
    ) -> AnswerKeyResponse:
        """Store the answer key of a post, replacing file and metadata of any previous one."""
        extension = file_extension(filename)
        if extension not in settings.ANSWER_KEY_EXTENSIONS:
            raise ValidationError(
                f"Only image or PDF files are allowed for answer key. Allowed: {', '.join(settings.ANSWER_KEY_EXTENSIONS)}",
                details={"file_name": filename},
            )

        answer_key = self.find(post_code)
        if answer_key is not None:
            self.storage.delete(answer_key.file_path)

        file_name = stored_file_name(ANSWER_KEY_PREFIX, post_code.value, extension)
        relative_path = self.storage.save(ANSWER_KEY_CATEGORY, file_name, content)

        try:
            if answer_key is None:
                answer_key = AnswerKey(post_code=post_code)
                self.db.add(answer_key)
            answer_key.file_path = relative_path
            answer_key.original_file_name = filename
            answer_key.is_published = publish
            answer_key.uploaded_at = utcnow()
            self.db.flush()
        except Exception:
            self.storage.delete(relative_path)
            raise

        logger.info(f"[ANSWER KEY] Stored answer key for {post_code.value} (published={publish})")
        return AnswerKeyResponse.model_validate(answer_key)

    def set_published(self, post_code: PostCode, is_published: bool) -> AnswerKeyResponse:
        answer_key = self.get(post_code)
        answer_key.is_published = is_published
        self.db.flush()
        return AnswerKeyResponse.model_validate(answer_key)

    def set_all_published(self, is_published: bool) -> AnswerKeyPublishAllResult:
        result = self.db.execute(
            update(AnswerKey)
            .where(AnswerKey.is_published != is_published)
            .values(is_published=is_published)
        )
        self.db.flush()
        action = "published" if is_published else "unpublished"
        updated = result.rowcount or 0
        if updated:
            message = f"{updated} answer key(s) {action} successfully"
        else:
            message = f"No answer keys needed to be {action}"
        return AnswerKeyPublishAllResult(updated=updated, message=message)

    def delete(self, post_code: PostCode) -> None:
        """Delete the record; a file that cannot be removed does not block it."""
        answer_key = self.get(post_code)
        try:
            self.storage.delete(answer_key.file_path)
        except StorageError:
            logger.warning(f"[ANSWER KEY] Could not delete file {answer_key.file_path}")
        self.db.delete(answer_key)
        self.db.flush()
        logger.info(f"[ANSWER KEY] Deleted answer key for {post_code.value}")

    def list_all(self) -> list[AnswerKeyResponse]:
        result = self.db.execute(select(AnswerKey).order_by(AnswerKey.post_code))
        return [AnswerKeyResponse.model_validate(a) for a in result.scalars().all()]

    def list_published(self, post_code: PostCode | None = None) -> list[AnswerKeyResponse]:
        query = select(AnswerKey).where(AnswerKey.is_published.is_(True))
        if post_code is not None:
            query = query.where(AnswerKey.post_code == post_code)
        result = self.db.execute(query.order_by(AnswerKey.post_code))
        return [AnswerKeyResponse.model_validate(a) for a in result.scalars().all()]

    def published_file(self, post_code: PostCode) -> tuple[Path, str]:
        """Path and download name of a published answer key."""
        answer_key = self.find(post_code)
        if answer_key is None or not answer_key.is_published:
            raise NotFoundError("Answer key", post_code.value)
        if not self.storage.exists(answer_key.file_path):
            raise NotFoundError("Answer key file", post_code.value)
        return self.storage.resolve(answer_key.file_path), answer_key.original_file_name

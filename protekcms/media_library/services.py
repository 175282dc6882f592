import logging

from protekcms.core.models import AuditLog
from protekcms.core.utils import create_audit_log
from .models import Media

logger = logging.getLogger(__name__)


def store_upload(upload, alt=None, description=None, request=None):
    """Save a validated image upload as a Media record"""
    user = getattr(request, 'user', None)
    media = Media(
        name=upload.name,
        type=Media.TYPE_IMAGE,
        size=upload.size,
        mime_type=upload.content_type,
        alt=alt or None,
        description=description or None,
        user=user if user is not None and user.is_authenticated else None,
    )
    media.file.save(upload.name, upload, save=False)
    media.save()
    create_audit_log(request, AuditLog.ACTION_CREATE, 'media', media.pk,
                     details=f'Media uploaded: {media.name}',
                     changes={'size': media.size, 'mime_type': media.mime_type})
    logger.info(f"Media {media.pk} uploaded ({media.size} bytes)")
    return media


def delete_media(media, request=None):
    """Remove the stored file and the record; a missing file is only logged"""
    media_id, name = media.pk, media.name
    if media.file:
        try:
            media.file.delete(save=False)
        except OSError as e:
            logger.warning(f"Could not delete file for media {media_id}: {str(e)}")
    media.delete()
    create_audit_log(request, AuditLog.ACTION_DELETE, 'media', media_id,
                     details=f'Media deleted: {name}')

"""
Receipt files for expenses, kept in Django's default storage (S3 through
django-storages when a bucket is configured, local media otherwise).
"""
import logging
import os
import time

from django.conf import settings
from django.core.files.storage import default_storage
from rest_framework.exceptions import ValidationError

logger = logging.getLogger(__name__)


def validate_receipt(upload):
    """Reject files outside the allow-list or over the size ceiling."""
    if upload is None:
        raise ValidationError({'file': 'No file provided'})

    if upload.content_type not in settings.RECEIPT_ALLOWED_CONTENT_TYPES:
        raise ValidationError(
            {'file': 'Invalid file type. Please upload an image (JPG, PNG, WebP) or PDF.'}
        )

    limit = settings.RECEIPT_MAX_UPLOAD_SIZE
    if upload.size > limit:
        raise ValidationError(
            {'file': f'File too large. Maximum size is {limit // (1024 * 1024)}MB.'}
        )


def receipt_path(expense, filename):
    extension = os.path.splitext(filename)[1].lstrip('.').lower() or 'jpg'
    timestamp = int(time.time() * 1000)
    return f'{settings.RECEIPT_UPLOAD_PREFIX}/{expense.group_id}/{expense.pk}/{timestamp}.{extension}'


def store_receipt(expense, upload):
    """
    Save *upload* and point the expense at it.

    Returns
    -------
    str
        The public URL of the stored receipt.
    """
    validate_receipt(upload)
    name = default_storage.save(receipt_path(expense, upload.name), upload)
    expense.receipt_url = default_storage.url(name)
    expense.save(update_fields=['receipt_url', 'updated_at'])
    logger.info('Stored receipt for expense %s at %s', expense.pk, name)
    return expense.receipt_url


def _stored_name(url):
    """Storage-relative name of a receipt URL we issued, else None."""
    marker = f'/{settings.RECEIPT_UPLOAD_PREFIX}/'
    if not url or marker not in url:
        return None
    return settings.RECEIPT_UPLOAD_PREFIX + '/' + url.split(marker, 1)[1].split('?', 1)[0]


def remove_receipt(expense):
    """Clear the expense's receipt, deleting the file when it is ours."""
    name = _stored_name(expense.receipt_url)
    if name:
        try:
            default_storage.delete(name)
        except OSError as exc:
            logger.warning('Could not delete receipt %s: %s', name, exc)

    expense.receipt_url = ''
    expense.save(update_fields=['receipt_url', 'updated_at'])

"""
Image hosting through Cloudinary
"""
import logging

import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings

logger = logging.getLogger(__name__)


class UploadError(Exception):
    pass


def _configure():
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True,
    )


def upload_file(file, folder):
    """Upload a file object to ``folder`` and return its secure URL"""
    _configure()
    try:
        result = cloudinary.uploader.upload(file, folder=folder, resource_type='auto')
    except CloudinaryError as e:
        logger.error(f"Cloudinary upload to {folder} failed: {str(e)}")
        raise UploadError('Failed to upload file') from e
    logger.info(f"Uploaded {getattr(file, 'name', 'file')} to {folder}")
    return result['secure_url']

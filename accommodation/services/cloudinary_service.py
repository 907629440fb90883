import logging
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

logger = logging.getLogger(__name__)

DATA_URL_PREFIX = 'data:image/'


def is_data_url(value):
    return isinstance(value, str) and value.startswith(DATA_URL_PREFIX)


class CloudinaryService:
    def __init__(self, folder='accommodation_properties'):
        self.folder = folder

    def upload_image(self, file, folder=None):
        """Upload an image to Cloudinary and return the secure URL"""
        try:
            result = cloudinary.uploader.upload(
                file,
                folder=folder or self.folder,
                resource_type='image'
            )
            return result.get('secure_url')
        except CloudinaryError:
            logger.warning('Cloudinary image upload failed', exc_info=True)
            return None

    def store_images(self, images):
        """Replace base64 data URLs with hosted URLs; plain URLs are kept as given"""
        stored = []
        for image in images:
            if is_data_url(image):
                url = self.upload_image(image)
                if url:
                    stored.append(url)
            else:
                stored.append(image)
        return stored

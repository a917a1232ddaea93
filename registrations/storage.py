"""
Content store for applicant documents and ID cards (S3 or S3-compatible).
"""
import logging
import mimetypes
import os
import uuid

from .exceptions import ContentStoreError

logger = logging.getLogger(__name__)


class ContentStore:
    """
    Uploads local files to a bucket and hands back their public URL.

    - Keys are "<folder>/<random hex>-<file name>" so re-uploads never collide
    - public_base_url (CDN or MinIO host) wins over the default S3 URL
    """

    def __init__(
        self,
        bucket,
        region='ap-south-1',
        endpoint_url=None,
        access_key_id=None,
        secret_access_key=None,
        public_base_url=None,
        public_read=True,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url or None
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self.public_base_url = (public_base_url or '').rstrip('/')
        self.public_read = public_read
        self._client = client

    def _get_client(self):
        """Lazy initialization of the S3 client"""
        if self._client is None:
            import boto3
            from botocore.config import Config

            kwargs = {'region_name': self.region}
            if self.endpoint_url:
                # MinIO and other S3-compatible stores need path-style addressing
                kwargs['endpoint_url'] = self.endpoint_url
                kwargs['config'] = Config(signature_version='s3v4', s3={'addressing_style': 'path'})
            if self._access_key_id and self._secret_access_key:
                kwargs['aws_access_key_id'] = self._access_key_id
                kwargs['aws_secret_access_key'] = self._secret_access_key
            else:
                logger.info("S3 client using default credential chain")
            self._client = boto3.client('s3', **kwargs)
        return self._client

    def public_url(self, key):
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, local_path, folder):
        """
        Upload local_path under folder.

        Returns:
            str: public URL of the uploaded object
        """
        from botocore.exceptions import BotoCoreError, ClientError

        filename = os.path.basename(local_path)
        key = f"{folder.strip('/')}/{uuid.uuid4().hex}-{filename}"
        content_type = mimetypes.guess_type(filename)[0] or 'application/octet-stream'
        extra_args = {'ContentType': content_type}
        if self.public_read:
            extra_args['ACL'] = 'public-read'

        try:
            self._get_client().upload_file(str(local_path), self.bucket, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError, OSError) as e:
            logger.error(f"Error uploading {filename} to content store: {e}")
            raise ContentStoreError(f"Upload of {filename} failed: {e}") from e

        url = self.public_url(key)
        logger.info(f"Uploaded {filename} to {folder}")
        return url

    def delete(self, local_path):
        """Remove a local file once it is no longer needed. Missing files are ignored."""
        try:
            os.remove(local_path)
            return True
        except FileNotFoundError:
            return False

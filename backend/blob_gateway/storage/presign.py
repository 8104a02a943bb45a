"""
Presigned upload URL signer.

Produces time-limited PUT URLs so clients can upload straight to R2,
bypassing gateway bandwidth. Signing needs explicit R2 credentials; the
ambient boto3 credential chain used by the object stores is not enough
to hand a URL to a third party.

Security:
- URL expires after the configured time
- Only allows PUT (upload), not GET
- Content-Type and Content-Length must match what was signed
"""
import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from blob_gateway.config import settings
from blob_gateway.errors import SigningUnavailable, StorageUnavailable
from blob_gateway.storage.r2_client import create_s3_client

logger = logging.getLogger(__name__)


class UrlSigner:
    """
    Signs PUT URLs for R2 buckets.

    The boto3 client is created only when credentials are configured;
    an unconfigured signer reports is_configured == False.
    """

    def __init__(self, client=None):
        self._client = client
        if self._client is None and settings.signing_configured:
            self._client = create_s3_client(settings.r2_access_key, settings.r2_secret_key)
            logger.info("R2 URL signer initialized")
        elif self._client is None:
            logger.warning(
                "R2 URL signing not configured. "
                "Set R2_ENDPOINT (or R2_ACCOUNT_ID), R2_ACCESS_KEY and R2_SECRET_KEY."
            )

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def sign_upload(
        self,
        bucket: str,
        object_key: str,
        content_type: str,
        size: int,
        expires_in: int,
    ) -> str:
        """
        Generate a presigned PUT URL scoped to one object.

        Args:
            bucket: Target bucket
            object_key: Object key in the bucket
            content_type: MIME type the upload must carry
            size: Exact Content-Length the upload must carry
            expires_in: Validity window in seconds

        Raises:
            SigningUnavailable: no signing credentials
            StorageUnavailable: boto3 could not produce a URL
        """
        if not self.is_configured:
            raise SigningUnavailable()

        try:
            url = self._client.generate_presigned_url(
                ClientMethod='put_object',
                Params={
                    'Bucket': bucket,
                    'Key': object_key,
                    'ContentType': content_type,
                    'ContentLength': size,
                },
                ExpiresIn=expires_in
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate presigned URL for {object_key}: {e}")
            raise StorageUnavailable("Failed to generate upload URL") from e

        logger.debug(f"Generated presigned URL for {object_key} (expires in {expires_in}s)")
        return url


# Singleton instance
_url_signer: Optional[UrlSigner] = None


def get_url_signer() -> UrlSigner:
    """Get the process-wide URL signer (may or may not be configured)."""
    global _url_signer
    if _url_signer is None:
        _url_signer = UrlSigner()
    return _url_signer

#!/usr/bin/env python3
"""
X (Twitter) publisher.

Publishes posts via the X API using OAuth 1.0a user context: media is uploaded
through the v1.1 endpoint, the post itself is created through API v2.
"""

import asyncio
import base64
import binascii
import io
import logging
from typing import Optional, Tuple

import tweepy

from core.exceptions import ConfigurationError
from core.models.publish import PostResult
from core.publishing.interfaces import SocialPublisher

logger = logging.getLogger(__name__)

POST_URL_TEMPLATE = "https://x.com/i/status/{post_id}"

MIME_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/gif": "gif",
    "image/webp": "webp",
}


def decode_image_data_uri(data_uri: str) -> Tuple[bytes, str]:
    """
    Decode a base64 data URI.

    Returns:
        (image bytes, mime type)

    Raises:
        ValueError: Malformed URI or empty payload
    """
    if not isinstance(data_uri, str) or "," not in data_uri:
        raise ValueError("Invalid image data URI format")

    metadata, payload = data_uri.split(",", 1)
    if not metadata.startswith("data:") or ";base64" not in metadata or not payload.strip():
        raise ValueError("Invalid image data URI format; expected a base64 data URI with content")

    mime_type = metadata[len("data:"):].split(";", 1)[0].lower() or "image/png"
    if mime_type not in MIME_EXTENSIONS:
        raise ValueError(f"Unsupported image type: {mime_type}")

    try:
        image_bytes = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Error decoding image data: {e}")

    if not image_bytes:
        raise ValueError("Image data is empty after base64 decoding")
    return image_bytes, mime_type


class XPublisher(SocialPublisher):
    """SocialPublisher for X using tweepy."""

    def __init__(self, app_key: Optional[str], app_secret: Optional[str],
                 access_token: Optional[str], access_secret: Optional[str]):
        """
        Raises:
            ConfigurationError: Any of the four credentials is missing
        """
        credentials = {
            'X_APP_KEY': app_key,
            'X_APP_SECRET': app_secret,
            'X_ACCESS_TOKEN': access_token,
            'X_ACCESS_SECRET': access_secret,
        }
        missing = [name for name, value in credentials.items() if not value or not value.strip()]
        if missing:
            raise ConfigurationError(', '.join(missing), "missing or empty X API credential")

        self.client = tweepy.Client(
            consumer_key=app_key,
            consumer_secret=app_secret,
            access_token=access_token,
            access_token_secret=access_secret,
        )
        # Media upload is only available on the v1.1 API
        self.media_api = tweepy.API(
            tweepy.OAuth1UserHandler(app_key, app_secret, access_token, access_secret)
        )

    def _post_sync(self, text: str, image_ref: Optional[str]) -> PostResult:
        media_ids = None
        if image_ref:
            try:
                image_bytes, mime_type = decode_image_data_uri(image_ref)
            except ValueError as e:
                logger.error(f"Refusing to post: {e}")
                return PostResult(success=False, message=str(e))

            try:
                media = self.media_api.media_upload(
                    filename=f"image.{MIME_EXTENSIONS[mime_type]}",
                    file=io.BytesIO(image_bytes)
                )
            except tweepy.TweepyException as e:
                logger.error(f"X media upload failed: {e}")
                return PostResult(success=False, message=f"Media upload failed: {e}")
            media_ids = [media.media_id]
            logger.info(f"Uploaded {len(image_bytes)} bytes of {mime_type} as media {media.media_id}")

        try:
            response = self.client.create_tweet(text=text, media_ids=media_ids)
        except tweepy.TweepyException as e:
            logger.error(f"X post failed: {e}")
            return PostResult(success=False, message=f"Post failed: {e}")

        post_id = (response.data or {}).get("id")
        if not post_id:
            return PostResult(success=False, message="X API returned no post id")

        post_url = POST_URL_TEMPLATE.format(post_id=post_id)
        logger.info(f"Published post {post_url}")
        return PostResult(success=True, message="Posted successfully", post_ref=post_url)

    async def post(self, text: str, image_ref: Optional[str] = None) -> PostResult:
        """Publish text with an optional image data URI."""
        if not text or not text.strip():
            logger.warning("Post text is empty; aborting post")
            return PostResult(success=False, message="Post text cannot be empty")
        return await asyncio.to_thread(self._post_sync, text, image_ref)

    def verify_credentials(self) -> bool:
        """Check the credentials against the API."""
        try:
            user = self.client.get_me()
            logger.info(f"X credentials valid for @{user.data.username}")
            return True
        except tweepy.TweepyException as e:
            logger.error(f"X credential check failed: {e}")
            return False

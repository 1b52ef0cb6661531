"""
Image Validation Client

Asks the external vision service whether an uploaded photo shows a real
civic issue.
"""
from typing import Optional

import requests
from pydantic import ValidationError

from config.settings import settings
from src.civicstack.errors import CollaboratorError
from src.civicstack.models.complaint import ImageValidation
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)


class ImageValidationClient:
    """Client for the image validation service."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        self.base_url = base_url or settings.image_validation_url
        self.api_key = api_key or settings.image_validation_api_key
        self.timeout = timeout or settings.image_validation_timeout_seconds
        self.session = requests.Session()

    def is_configured(self) -> bool:
        return bool(self.base_url)

    def validate(self, image_url: str, category: Optional[str] = None) -> ImageValidation:
        """
        Validate an uploaded image.

        Args:
            image_url: Public URL of the uploaded photo
            category: Category the reporter chose

        Returns:
            ImageValidation result

        Raises:
            CollaboratorError: Service unconfigured, unreachable or returned garbage
        """
        if not self.is_configured():
            raise CollaboratorError("image_validation", "service URL not configured")

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            response = self.session.post(
                self.base_url,
                json={"imageUrl": image_url, "category": category},
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = ImageValidation.model_validate(response.json())
        except requests.RequestException as e:
            logger.warning("image_validation_failed", error=str(e), error_type=type(e).__name__)
            raise CollaboratorError("image_validation", str(e)) from e
        except (ValueError, ValidationError) as e:
            logger.warning("image_validation_invalid_response", error=str(e))
            raise CollaboratorError("image_validation", "invalid response") from e

        logger.info(
            "image_validated",
            is_valid=result.is_valid_civic_issue,
            confidence=result.confidence
        )
        return result

"""
Image generation for LinkedIn and Instagram drafts via Replicate
"""
import os
import secrets
import time
from datetime import datetime
from typing import Any, Dict, Optional

from config.settings import settings
from layer_3_draft_generation.platform_prompts import IMAGE_ASPECT_RATIOS, build_image_prompt
from utils import http_client
from utils.errors import DraftValidationError, ImageGenerationError, ImageGenerationTimeout
from utils.logger import get_logger

logger = get_logger(__name__)

NEGATIVE_PROMPT = "text, watermark, logo, low quality, blurry, distorted"
INFERENCE_STEPS = 4


class ImageGenerator:
    """Starts a Replicate prediction, polls it and downloads the image"""

    def __init__(self, api_token: Optional[str] = None, base_url: Optional[str] = None,
                 model: Optional[str] = None, output_dir: Optional[str] = None,
                 poll_interval: Optional[float] = None, max_attempts: Optional[int] = None):
        self.api_token = api_token or settings.REPLICATE_API_TOKEN
        self.base_url = (base_url or settings.REPLICATE_API_BASE).rstrip('/')
        self.model = model or settings.REPLICATE_IMAGE_MODEL
        self.output_dir = output_dir or settings.GENERATIONS_DIR
        self.poll_interval = settings.IMAGE_POLL_INTERVAL if poll_interval is None else poll_interval
        self.max_attempts = max_attempts or settings.IMAGE_POLL_ATTEMPTS

    def _headers(self) -> Dict[str, str]:
        if not self.api_token:
            raise ImageGenerationError("REPLICATE_API_TOKEN is not configured")
        return {"Authorization": f"Bearer {self.api_token}", "Content-Type": "application/json"}

    def start_prediction(self, prompt: str, aspect_ratio: str) -> Dict[str, Any]:
        return http_client.request_json(
            "POST",
            f"{self.base_url}/models/{self.model}/predictions",
            service="Replicate",
            headers=self._headers(),
            json={
                "input": {
                    "prompt": prompt,
                    "aspect_ratio": aspect_ratio,
                    "negative_prompt": NEGATIVE_PROMPT,
                    "num_inference_steps": INFERENCE_STEPS,
                    "output_format": "webp",
                }
            },
        )

    def _prediction_output(self, prediction: Dict[str, Any]) -> Optional[str]:
        """Output URL of a finished prediction, None while it is still running"""
        status = prediction.get("status")
        if status == "succeeded":
            output = prediction.get("output")
            url = output[0] if isinstance(output, list) and output else output
            if not url:
                raise ImageGenerationError("Image generation returned no output")
            return url
        if status in ("failed", "canceled"):
            raise ImageGenerationError("Image generation failed", details=str(prediction.get("error") or status))
        return None

    def wait_for_prediction(self, prediction: Dict[str, Any]) -> str:
        """Poll until the prediction succeeds and return the output URL"""
        url = self._prediction_output(prediction)
        if url:
            return url

        prediction_id = prediction.get("id")
        for attempt in range(1, self.max_attempts + 1):
            time.sleep(self.poll_interval)
            prediction = http_client.request_json(
                "GET",
                f"{self.base_url}/predictions/{prediction_id}",
                service="Replicate",
                headers=self._headers(),
            )
            url = self._prediction_output(prediction)
            if url:
                return url
            logger.info(f"Prediction {prediction_id} is {prediction.get('status')} "
                        f"(attempt {attempt}/{self.max_attempts})")

        raise ImageGenerationTimeout()

    def download_image(self, url: str, user_id: str) -> str:
        resp = http_client.request("GET", url, service="Replicate")
        user_dir = os.path.join(self.output_dir, user_id)
        os.makedirs(user_dir, exist_ok=True)
        filename = f"{datetime.now().strftime('%Y%m%d%H%M%S')}-{secrets.token_hex(4)}.webp"
        path = os.path.join(user_dir, filename)
        with open(path, 'wb') as f:
            f.write(resp.content)
        logger.info(f"Saved generated image to {path}")
        return path

    def generate_image(self, content: str, platform: str,
                       topic: Optional[str] = None,
                       user_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Generate an image for a LinkedIn or Instagram draft

        Returns:
            {'image_url': remote url, 'local_path': downloaded file, 'prompt': used prompt}

        Raises:
            DraftValidationError: unsupported platform or empty content
            ImageGenerationError: the prediction failed
            ImageGenerationTimeout: still not finished after all poll attempts
        """
        if platform not in IMAGE_ASPECT_RATIOS:
            raise DraftValidationError("Image generation is only available for linkedin and instagram")
        if not content or not content.strip():
            raise DraftValidationError("Content is required")

        prompt = build_image_prompt(platform, content, topic)
        prediction = self.start_prediction(prompt, IMAGE_ASPECT_RATIOS[platform])
        image_url = self.wait_for_prediction(prediction)
        local_path = self.download_image(image_url, user_id or settings.DEFAULT_USER_ID)
        return {"image_url": image_url, "local_path": local_path, "prompt": prompt}

"""
Screenshot classification using an OpenAI-compatible vision endpoint.

Provides:
- Prompt construction from the category taxonomy
- One chat-completions request per image (base64 data URI)
- Fallback to the original name on any failure
"""

import asyncio
import base64
import mimetypes
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from shotsort.models.schemas import ClassificationResult, SorterConfig
from shotsort.utils.helpers import sanitize_filename


def build_category_prompt(categories: Mapping[str, str]) -> str:
    """Explain to the model how each category should be used."""
    rules = ",".join(
        f'If {description}, set it to "{name}"'
        for name, description in categories.items()
    )
    return f"Identify the image's category from the following rule: \n{rules}"


def build_prompt(categories: Mapping[str, str]) -> str:
    """Build the fixed instructional prompt sent with every image."""
    return (
        "Suggest a short and concise file name in 1-3 words.\n"
        "If you can identify the software or website being used, add that as part of the new name.\n"
        "For example, terminal, youtube, photoshop, etc.\n"
        "Do not include file extension such as .png, .jpg or .txt. Use dash to connect words. \n"
        f"{build_category_prompt(categories)}\n"
        "Return as structured json in the format { category, filename } and nothing else."
    )


def encode_image(data: bytes, path: Path) -> str:
    """Encode image bytes as a data URI."""
    mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class Classifier:
    """Client asking a vision model for a category and filename."""

    def __init__(
        self,
        config: SorterConfig,
        prompt: str,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize classifier.

        Args:
            config: Runtime configuration
            prompt: Instructional prompt built from the categories
            client: Optional preconfigured HTTP client
        """
        self.config = config
        self.provider = config.provider
        self.prompt = prompt
        self.endpoint = f"{self.provider.base_url.rstrip('/')}/chat/completions"
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=config.request_timeout)

    async def aclose(self):
        """Close the HTTP client if it was created here."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "Classifier":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    def build_request(self, image_url: str) -> Dict[str, Any]:
        """Build the chat-completions request body."""
        return {
            "model": self.provider.model,
            "response_format": {"type": "json_object"},
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self.prompt},
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": image_url,
                                "detail": self.config.detail,
                            },
                        },
                    ],
                }
            ],
            "max_tokens": self.provider.max_tokens,
        }

    async def classify(self, path: Path) -> ClassificationResult:
        """
        Ask the model to classify and name a screenshot.

        Never raises; any failure returns the original name with no category.

        Args:
            path: Screenshot file

        Returns:
            Classification result
        """
        original = path.stem
        fallback = ClassificationResult(filename=original)

        try:
            data = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            return fallback

        logger.opt(colors=True).info(
            "Asking <yellow>{} ({})</yellow> to rename <yellow>{}</yellow>",
            self.provider.model,
            self.config.provider_name,
            original,
        )

        try:
            response = await self.client.post(
                self.endpoint,
                json=self.build_request(encode_image(data, path)),
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
            response.raise_for_status()
            choice = response.json()["choices"][0]
            reason = choice.get("finish_reason")
            content = (choice.get("message") or {}).get("content")

        except httpx.HTTPError as e:
            logger.warning(f"Classification request failed for {original}: {e}")
            return fallback
        except (KeyError, IndexError, TypeError, AttributeError, ValueError) as e:
            logger.warning(f"Unexpected response shape for {original}: {e}")
            return fallback

        # check finish reason before parsing the response
        if reason != "stop":
            logger.warning(f"Model stopped generating: {reason}")
            return fallback

        if not content:
            logger.warning(f"Model returned no content for {original}")
            return fallback

        try:
            result = ClassificationResult.model_validate_json(content)
        except ValidationError as e:
            logger.warning(f"Malformed model response for {original}: {e}")
            return fallback

        category = (result.category or "").strip() or None
        filename = sanitize_filename(result.filename) or original
        return ClassificationResult(category=category, filename=filename)

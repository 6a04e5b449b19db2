import base64
import json
import logging
import re
import time

import httpx
from litellm import acompletion
from litellm.exceptions import APIConnectionError, Timeout

from billsplit.core.config import settings
from billsplit.core.errors import MalformedResponseError, NetworkError, ServiceError

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """You are an expert at analyzing restaurant receipts.

Carefully examine this receipt image and extract:
1. All individual menu items with their exact names, quantities, unit prices, and total prices
2. The total amount of the bill

Return this exact JSON structure:

{
  "items": [
    {"name": "Item Name 1", "quantity": 2, "unitPrice": 10.99, "totalPrice": 21.98},
    {"name": "Item Name 2", "quantity": 1, "unitPrice": 5.99, "totalPrice": 5.99}
  ],
  "total": 27.97
}

Rules:
- Return ONLY valid JSON, no markdown or explanation.
- Be precise with item names, quantities, and prices. If something is hard to read, make your best guess.
- If a quantity is not stated, use 1.
- unitPrice = totalPrice / quantity and totalPrice = unitPrice * quantity.
"""


def guess_mime_type(name: str) -> str:
    name = name.lower()
    if name.endswith(".png"):
        return "image/png"
    if name.endswith(".webp"):
        return "image/webp"
    return "image/jpeg"


async def fetch_image(url: str) -> tuple[bytes, str]:
    """Download a receipt image. Returns the bytes and their mime type."""
    try:
        async with httpx.AsyncClient(timeout=settings.image_fetch_timeout_seconds) as client:
            response = await client.get(url)
            response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise NetworkError(f"Image download failed: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        raise NetworkError(f"Image download failed: {e}") from e

    mime_type = response.headers.get("content-type", "").split(";")[0].strip()
    if not mime_type.startswith("image/"):
        mime_type = guess_mime_type(url)
    logger.info(f"Downloaded receipt image ({len(response.content)} bytes, {mime_type})")
    return response.content, mime_type


def extract_json(raw_text: str) -> dict:
    """Pull the JSON object out of a model reply, tolerating markdown fences."""
    text = raw_text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()

    match = re.search(r"\{.*\}", text, re.DOTALL)
    if not match:
        raise MalformedResponseError("No JSON object found in the reader's reply")
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON from the reader: {e.msg}") from e


async def extract_receipt(image_bytes: bytes, mime_type: str = "image/jpeg") -> dict:
    """
    Send a receipt image to the configured LLM and return its parsed JSON.

    One request, no retry. Connection problems and timeouts raise
    NetworkError, any other provider failure raises ServiceError, and a reply
    that is not a JSON object raises MalformedResponseError.
    """
    if not settings.llm_api_key:
        raise ServiceError("LLM API key is not configured")

    encoded = base64.b64encode(image_bytes).decode("ascii")
    messages = [{
        "role": "user",
        "content": [
            {"type": "text", "text": EXTRACTION_PROMPT},
            {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
        ],
    }]

    start_time = time.time()
    logger.info(f"Starting OCR with model {settings.llm_model_name} ({len(image_bytes)} bytes)")
    try:
        response = await acompletion(
            model=settings.llm_model_name,
            messages=messages,
            api_key=settings.llm_api_key,
            temperature=settings.llm_temperature,
            max_tokens=settings.llm_max_tokens,
            timeout=settings.ocr_timeout_seconds,
        )
    except (APIConnectionError, Timeout) as e:
        logger.warning(f"OCR request did not reach the model: {e}")
        raise NetworkError(str(e)) from e
    except Exception as e:
        logger.error(f"OCR request failed: {e!r}")
        raise ServiceError(str(e)) from e

    logger.info(f"Received OCR response in {time.time() - start_time:.2f}s")

    try:
        raw_text = response.choices[0].message.content
    except (AttributeError, IndexError) as e:
        raise MalformedResponseError("The reader's reply had no content") from e
    if not raw_text:
        raise MalformedResponseError("The reader's reply was empty")

    return extract_json(raw_text)

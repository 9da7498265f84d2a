"""
Webhook Dispatcher - Form Scoring & Access Engine
formengine/services/webhook.py

Forwards a submitted response to the URL configured in form.http_config.
Failures, including a URL httpx cannot parse, are logged and never
propagate to the submission.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

import httpx

from formengine.config import settings
from formengine.models.enumerations import HttpMethod
from formengine.models.form import FormDefinition, HttpConfig
from formengine.models.response import FormResponse

logger = logging.getLogger(__name__)

# Body key replaced by the full response record
RESPONSE_PLACEHOLDER = "id_del_elemento"


def build_headers(config: HttpConfig) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    for header in config.headers:
        if header.key and header.value:
            headers[header.key] = header.value
    return headers


def build_body(config: HttpConfig, response: FormResponse) -> Union[str, None]:
    """
    JSON body for a POST.

    With no configured body the response record itself is sent. A configured
    body that parses to an object carrying RESPONSE_PLACEHOLDER gets the
    record substituted; any other body is sent as written.
    """
    record = response.model_dump(mode="json")
    if not config.body:
        return json.dumps(record)

    try:
        body_obj: Any = json.loads(config.body)
    except ValueError as e:
        logger.warning(f"Webhook body is not valid JSON, sending as-is: {e}")
        return config.body

    if isinstance(body_obj, dict) and RESPONSE_PLACEHOLDER in body_obj:
        body_obj[RESPONSE_PLACEHOLDER] = record
        return json.dumps(body_obj)
    return config.body


class WebhookDispatcher:
    """Sends submissions to per-form webhooks with httpx."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        self._client = client
        self.timeout = timeout or settings.WEBHOOK_TIMEOUT_SECONDS

    @staticmethod
    def is_enabled(form: FormDefinition) -> bool:
        config = form.http_config
        return bool(config and config.enabled and config.url)

    async def dispatch(self, form: FormDefinition, response: FormResponse) -> Optional[int]:
        """
        Returns:
            HTTP status code of the webhook call, or None when nothing was
            sent or the request failed.
        """
        if not self.is_enabled(form):
            return None

        config = form.http_config
        content = build_body(config, response) if config.method == HttpMethod.POST else None

        try:
            if self._client is not None:
                reply = await self._send(self._client, config, content)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    reply = await self._send(client, config, content)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Webhook for form {form.id} failed: {e}")
            return None

        logger.info(f"Webhook for form {form.id} answered {reply.status_code}")
        return reply.status_code

    async def _send(
        self,
        client: httpx.AsyncClient,
        config: HttpConfig,
        content: Optional[str],
    ) -> httpx.Response:
        return await client.request(
            config.method.value,
            config.url,
            headers=build_headers(config),
            content=content,
        )

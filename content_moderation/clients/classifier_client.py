import asyncio
from functools import lru_cache
from typing import Any, Callable, Dict, Literal, Optional

import requests
from pydantic import ValidationError

from content_moderation.core.config import ClassifierConfig, settings
from content_moderation.core.exceptions import ClassifierServiceException
from content_moderation.core.logger import logger
from content_moderation.schemas.moderation import ModerationResult
from content_moderation.services import fallback

Kind = Literal["image", "text"]


class RemoteClassifier:
    """
    Adapter around the remote content-safety function.

    ``classify_text`` and ``classify_image`` always return a result: when the
    service is unconfigured, slow, failing or answers with an unexpected
    payload, the fallback heuristic for the same input is used instead.
    """

    def __init__(self, config: ClassifierConfig, session: Optional[requests.Session] = None):
        self.config = config
        # None means a plain requests.post per call; a Session must not be shared across executor threads
        self._session = session

    async def classify_text(self, text: str) -> ModerationResult:
        return await self._classify("text", text, fallback.classify_text)

    async def classify_image(self, url: str) -> ModerationResult:
        return await self._classify("image", url, fallback.classify_media_url)

    async def _classify(
        self,
        kind: Kind,
        payload: str,
        fallback_fn: Callable[[str], ModerationResult],
    ) -> ModerationResult:
        if not self.config.is_configured():
            logger.debug(f"Remote classifier not configured, using fallback for {kind}")
            return fallback_fn(payload)

        try:
            result = await asyncio.wait_for(
                self._invoke_remote(kind, payload),
                timeout=self.config.timeout_seconds,
            )
            logger.info(
                f"Remote {kind} classification succeeded",
                extra={"kind": kind, "is_approved": result.is_approved}
            )
            return result
        except asyncio.TimeoutError:
            logger.warning(
                f"Remote {kind} classification timed out, using fallback",
                extra={"kind": kind, "timeout": self.config.timeout_seconds}
            )
        except (requests.exceptions.RequestException, ClassifierServiceException) as e:
            logger.warning(
                f"Remote {kind} classification failed, using fallback",
                extra={"kind": kind, "error": str(e)}
            )
        except Exception as e:
            logger.error(
                f"Unexpected error in remote {kind} classification, using fallback",
                extra={"kind": kind, "error": str(e)},
                exc_info=True
            )

        return fallback_fn(payload)

    def _request_body(self, kind: Kind, payload: str) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": kind,
            "config": {
                "endpoint": self.config.endpoint,
                "subscriptionKey": self.config.subscription_key,
                "region": self.config.region,
            },
        }
        if kind == "image":
            body["url"] = payload
        else:
            body["content"] = payload
        return body

    def _post(self, body: Dict[str, Any]) -> requests.Response:
        headers = {"Content-Type": "application/json"}
        if self.config.function_key:
            headers["Authorization"] = f"Bearer {self.config.function_key}"
        post = self._session.post if self._session is not None else requests.post
        return post(
            self.config.function_url,
            json=body,
            headers=headers,
            timeout=self.config.timeout_seconds,
        )

    async def _invoke_remote(self, kind: Kind, payload: str) -> ModerationResult:
        body = self._request_body(kind, payload)
        response = await asyncio.get_running_loop().run_in_executor(
            None, lambda: self._post(body)
        )

        if not response.ok:
            raise ClassifierServiceException(
                f"Classifier returned status {response.status_code}",
                kind=kind,
                details={"status_code": response.status_code, "response": response.text[:200]}
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ClassifierServiceException(f"Classifier returned invalid JSON: {e}", kind=kind)

        if not isinstance(data, dict) or data.get("success") is not True:
            raise ClassifierServiceException("Classifier response missing success marker", kind=kind)

        try:
            return ModerationResult.model_validate(data.get("result"))
        except ValidationError as e:
            raise ClassifierServiceException(
                f"Classifier returned a malformed result: {e.error_count()} errors",
                kind=kind
            )


@lru_cache
def get_classifier() -> RemoteClassifier:
    """FastAPI dependency; one adapter per process."""
    return RemoteClassifier(ClassifierConfig.from_settings(settings))

"""AI tutor chat about a single resource."""

import codecs
import logging

from models import ChatResponse, ResourceContext

log = logging.getLogger(__name__)


class AiService:
    def __init__(self, api):
        self._api = api

    @staticmethod
    def _payload(resource_id: str, message: str, context: ResourceContext | None) -> dict:
        payload = {"resourceId": resource_id, "message": message}
        if context is not None:
            payload["resourceContext"] = context.model_dump(by_alias=True)
        return payload

    async def chat(
        self, resource_id: str, message: str, context: ResourceContext | None = None,
    ) -> ChatResponse:
        data = await self._api.post("/ai/chat", self._payload(resource_id, message, context))
        return ChatResponse.model_validate(data)

    async def stream_chat(
        self, resource_id: str, message: str, context: ResourceContext | None = None,
    ):
        """Yield the answer as text chunks while the model generates it."""
        payload = self._payload(resource_id, message, context)
        async with self._api.stream("POST", "/ai/stream", json=payload) as resp:
            # multi-byte characters may be split across network chunks
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            async for chunk in resp.content.iter_any():
                text = decoder.decode(chunk)
                if text:
                    yield text
            tail = decoder.decode(b"", final=True)
            if tail:
                yield tail
        log.debug("AI stream for %s finished", resource_id)

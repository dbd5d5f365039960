import logging
import mimetypes

from models import CreateResource, Page, Resource, ResourceQuery, UploadedFile

log = logging.getLogger(__name__)


class ResourcesService:
    def __init__(self, api):
        self._api = api

    async def search(self, query: ResourceQuery | None = None, **filters) -> Page[Resource]:
        query = query or ResourceQuery(**filters)
        data = await self._api.get("/resources", params=query.to_params())
        return Page[Resource].model_validate(data)

    async def featured(self, limit: int = 6) -> list[Resource]:
        data = await self._api.get("/resources/featured", params={"limit": limit})
        return [Resource.model_validate(r) for r in data]

    async def trending(self, limit: int = 6) -> list[Resource]:
        data = await self._api.get("/resources/trending", params={"limit": limit})
        return [Resource.model_validate(r) for r in data]

    async def get(self, resource_id: str) -> Resource:
        return Resource.model_validate(await self._api.get(f"/resources/{resource_id}"))

    async def my_uploads(self) -> list[Resource]:
        data = await self._api.get("/resources/user/uploads")
        return [Resource.model_validate(r) for r in data]

    async def upload_file(
        self, filename: str, content: bytes, content_type: str | None = None,
    ) -> UploadedFile:
        """Push the raw file to storage; the returned URL goes into ``create``."""
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        data = await self._api.post(
            "/uploads", form=[("file", content, filename, content_type)],
        )
        log.info("Uploaded %s (%d bytes)", filename, len(content))
        return UploadedFile.model_validate(data)

    async def create(self, resource: CreateResource) -> Resource:
        data = await self._api.post(
            "/resources", resource.model_dump(by_alias=True, exclude_none=True),
        )
        return Resource.model_validate(data)

    async def delete(self, resource_id: str) -> dict:
        return await self._api.delete(f"/resources/{resource_id}")

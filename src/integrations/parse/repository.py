"""
Parse Server record and blob stores.

Implements the RecordStore and BlobStore protocols on top of ParseClient.
Every call carries the caller's session token so Parse enforces the
record ACLs.
"""

import logging
from typing import Optional, Sequence

from src.integrations.base import AuthContext, BlobStore, RecordStore, StoredBlob
from src.integrations.parse.adapter import ParseAdapter
from src.integrations.parse.client import ParseClient
from src.integrations.parse.exceptions import ParseError, ParseNotFoundError
from src.models.family import FamilyMember

logger = logging.getLogger(__name__)

FAMILY_MEMBER_CLASS = "FamilyMember"


class ParseRecordStore(RecordStore):
    """RecordStore implementation using the Parse "FamilyMember" class."""

    def __init__(self, client: ParseClient, class_name: str = FAMILY_MEMBER_CLASS):
        self._client = client
        self._class_name = class_name
        self._adapter = ParseAdapter()

    async def find(
        self,
        auth: AuthContext,
        owner_id: Optional[str] = None,
        record_id: Optional[str] = None,
    ) -> Sequence[FamilyMember]:
        where: dict = {}
        if owner_id is not None:
            where["userId"] = owner_id
        if record_id is not None:
            where["objectId"] = record_id

        objects = await self._client.query(
            self._class_name, where, session_token=auth.session_token
        )
        members = [self._adapter.from_parse_object(obj) for obj in objects]
        logger.debug(f"Parse query {where} returned {len(members)} records")
        return members

    async def get(self, auth: AuthContext, record_id: str) -> Optional[FamilyMember]:
        try:
            obj = await self._client.get_object(
                self._class_name, record_id, session_token=auth.session_token
            )
        except ParseNotFoundError:
            return None
        return self._adapter.from_parse_object(obj)

    async def save(self, auth: AuthContext, record: FamilyMember) -> FamilyMember:
        body = self._adapter.to_parse_object(record)

        if record.id:
            response = await self._client.update_object(
                self._class_name, record.id, body, session_token=auth.session_token
            )
        else:
            response = await self._client.create_object(
                self._class_name, body, session_token=auth.session_token
            )
            if "objectId" not in response:
                raise ParseError("Create response did not include an objectId")
            logger.info(f"Created Parse object {response['objectId']}")

        return self._adapter.apply_save_response(record, response)

    async def delete(self, auth: AuthContext, record: FamilyMember) -> None:
        if not record.id:
            raise ParseError("Cannot delete an object without objectId")
        await self._client.delete_object(
            self._class_name, record.id, session_token=auth.session_token
        )


class ParseBlobStore(BlobStore):
    """BlobStore implementation using Parse files."""

    def __init__(self, client: ParseClient):
        self._client = client

    async def upload(
        self,
        auth: AuthContext,
        name: str,
        data: bytes,
        content_type: str = "application/octet-stream",
    ) -> StoredBlob:
        response = await self._client.upload_file(
            name, data, content_type, session_token=auth.session_token
        )
        if not response.get("url"):
            raise ParseError(f"File upload of {name} returned no URL")
        return StoredBlob(name=response.get("name", name), url=response["url"])

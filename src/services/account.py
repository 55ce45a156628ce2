"""
Account deletion.

Deletes every family member owned by the user, then the user account.
Record deletions run concurrently as independent tasks; one failure does
not stop the others, but any failure fails the whole operation and the
user account is kept.
"""

import asyncio
import logging
from typing import Optional

from src.integrations.base import AuthContext, AuthProvider, RecordStore
from src.services.exceptions import NotAuthenticated, RemoteError
from src.services.synchronizer import RecordSynchronizer, call_remote

logger = logging.getLogger(__name__)


async def delete_account(
    auth: Optional[AuthContext],
    auth_provider: AuthProvider,
    record_store: RecordStore,
    synchronizer: Optional[RecordSynchronizer] = None,
) -> int:
    """
    Delete the user's records and account, then end the session.

    Args:
        auth: Caller
        auth_provider: Provider owning the account
        record_store: Store holding the user's records
        synchronizer: Local collection to clear on success

    Returns:
        Number of records deleted

    Raises:
        NotAuthenticated: No user id
        RemoteError: Listing, any record deletion, or the user deletion failed
    """
    if auth is None or not auth.is_authenticated:
        raise NotAuthenticated("No user logged in")

    records = await call_remote(
        "Listing family members for account deletion",
        record_store.find(auth, owner_id=auth.user_id),
    )

    results = await asyncio.gather(
        *(record_store.delete(auth, record) for record in records),
        return_exceptions=True,
    )
    failures = [
        (record, result)
        for record, result in zip(records, results)
        if isinstance(result, BaseException)
    ]
    if failures:
        for record, error in failures:
            logger.error(f"Deleting family member {record.id} failed: {error!r}")
        first_error = failures[0][1]
        raise RemoteError(
            f"Failed to delete account: {len(failures)} of {len(records)} "
            f"family members could not be deleted",
            original_error=first_error if isinstance(first_error, Exception) else None,
        )

    await call_remote(f"Deleting user {auth.user_id}", auth_provider.delete_user(auth))

    if synchronizer is not None:
        synchronizer.clear()

    try:
        await auth_provider.logout(auth)
    except Exception as e:
        logger.warning(f"Logout after deleting user {auth.user_id} failed: {e}")

    logger.info(f"Deleted account {auth.user_id} and {len(records)} family members")
    return len(records)

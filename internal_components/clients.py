"""
HTTP clients for the services content placeholders depend on

Handles document existence checks against the document store and blog post
UUID resolution. No retries: a failed call fails the mapping.
"""

import time
from typing import Optional

import requests

from logging_config import logger

from .exceptions import DocumentStoreApiError, UuidResolverError
from .uuids import is_valid_uuid

REQUEST_ID_HEADER = "X-Request-Id"


class DocumentStoreApiClient:
    """Checks whether content exists in the document store"""

    def __init__(self, base_url: str, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def exists(self, uuid: str, transaction_id: str) -> bool:
        """Use the document store's content endpoint to check a UUID is present

        Parameters:
            :uuid: string UUID of the content
            :transaction_id: sent as the request id

        Raises:
            DocumentStoreApiError: on connection failure or unexpected status
        """
        content_path = f"{self.base_url}/content/{uuid}"
        started = time.monotonic()
        try:
            response = requests.head(
                content_path,
                headers={REQUEST_ID_HEADER: transaction_id},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.log_api_call("HEAD", content_path, transaction_id=transaction_id)
            raise DocumentStoreApiError(
                f"Failed to call document store for {uuid}: {e}", uuid
            ) from e

        logger.log_api_call(
            "HEAD",
            content_path,
            status_code=response.status_code,
            response_time=time.monotonic() - started,
            transaction_id=transaction_id,
        )

        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False

        raise DocumentStoreApiError(
            f"Unexpected status {response.status_code} from document store for {uuid}",
            uuid,
            {"status_code": response.status_code},
        )


class BlogUuidResolverClient:
    """Resolves the UUID of a blog post from its CMS service id and reference"""

    def __init__(self, base_url: str, timeout: Optional[float] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def resolve(self, service_id: str, ref_field: str, transaction_id: str) -> str:
        """Use the resolver's blog-uuid endpoint to look up a blog post

        Parameters:
            :service_id: blog post URL as recorded by the CMS
            :ref_field: blog post id as recorded by the CMS
            :transaction_id: sent as the request id

        Raises:
            UuidResolverError: on connection failure, non-200 status or a
                               response without a valid UUID
        """
        resolve_path = f"{self.base_url}/blog-uuid"
        params = {"serviceId": service_id, "refField": ref_field}
        started = time.monotonic()
        try:
            response = requests.get(
                resolve_path,
                params=params,
                headers={REQUEST_ID_HEADER: transaction_id},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.log_api_call("GET", resolve_path, transaction_id=transaction_id)
            raise UuidResolverError(f"Can't resolve uuid for {service_id}: {e}") from e

        logger.log_api_call(
            "GET",
            resolve_path,
            status_code=response.status_code,
            response_time=time.monotonic() - started,
            transaction_id=transaction_id,
        )

        if response.status_code != 200:
            raise UuidResolverError(
                f"Can't resolve uuid for {service_id}: status {response.status_code}",
                details={"status_code": response.status_code},
            )

        try:
            resolved = response.json().get("uuid", "")
        except (ValueError, AttributeError) as e:
            raise UuidResolverError(f"Can't resolve uuid for {service_id}: {e}") from e

        if not is_valid_uuid(resolved or ""):
            raise UuidResolverError(
                f"Can't resolve uuid for {service_id}: invalid uuid {resolved!r}"
            )
        return resolved

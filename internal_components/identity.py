"""
Canonical identity of content placeholders

A content placeholder stands in for content hosted elsewhere. Its published
identity is either named explicitly (and must exist in the document store) or,
for blog-like categories, resolved from the blog post reference.
"""

from typing import Protocol

from logging_config import logger

from .documents import DocumentTrees, evaluate_string
from .exceptions import (
    DocumentStoreApiError,
    MissingRequiredFieldError,
    TransformationError,
)
from .uuids import is_valid_uuid

ORIGINAL_UUID_XPATH = "/ObjectMetadata/EditorialNotes/OriginalUUID"
WIRES_INDEXING_XPATH = "/ObjectMetadata/WiresIndexing"
CATEGORY_XPATH = WIRES_INDEXING_XPATH + "/category"
SERVICE_ID_XPATH = WIRES_INDEXING_XPATH + "/serviceid"
REF_FIELD_XPATH = WIRES_INDEXING_XPATH + "/ref_field"

BLOG_CATEGORIES = frozenset(
    {
        "blog",
        "webchat-live-blogs",
        "webchat-live-qa",
        "webchat-markets-live",
        "fastft",
    }
)


class BlogIdentityResolver(Protocol):
    def resolve(self, service_id: str, ref_field: str, transaction_id: str) -> str:
        ...


class ExistenceChecker(Protocol):
    def exists(self, uuid: str, transaction_id: str) -> bool:
        ...


class IdentityResolver:
    """Resolves the UUID a content placeholder is published under"""

    def __init__(
        self,
        blog_resolver: BlogIdentityResolver,
        existence_checker: ExistenceChecker,
    ):
        self.blog_resolver = blog_resolver
        self.existence_checker = existence_checker

    def resolve(self, trees: DocumentTrees, uuid: str, transaction_id: str) -> str:
        """
        Resolve the canonical UUID of a content placeholder.

        Parameters:
            :trees: parsed source document
            :uuid: the placeholder's own UUID, kept when nothing else applies
            :transaction_id: publish transaction id, forwarded to services

        Raises:
            TransformationError: invalid or unknown original UUID, or a document
                                 store failure
            MissingRequiredFieldError: blog category without serviceid/ref_field
            UuidResolverError: the blog resolver failed
        """
        original_uuid = evaluate_string(trees.attributes, ORIGINAL_UUID_XPATH).strip()
        if original_uuid:
            return self._resolve_original(original_uuid, uuid, transaction_id)

        category = evaluate_string(trees.attributes, CATEGORY_XPATH).strip()
        if category in BLOG_CATEGORIES:
            return self._resolve_blog(trees, uuid, transaction_id)

        logger.debug(
            f"Content placeholder {uuid} keeps its own identity",
            transaction_id=transaction_id,
            category=category,
        )
        return uuid

    def _resolve_original(self, original_uuid: str, uuid: str, transaction_id: str) -> str:
        if not is_valid_uuid(original_uuid):
            raise TransformationError(
                f"[{uuid}] original UUID is not a valid UUID: {original_uuid}",
                uuid,
                {"original_uuid": original_uuid},
            )

        try:
            present = self.existence_checker.exists(original_uuid, transaction_id)
        except DocumentStoreApiError as e:
            raise TransformationError(
                f"[{uuid}] unable to check original UUID {original_uuid}: {e}",
                uuid,
                {"original_uuid": original_uuid},
            ) from e

        if not present:
            raise TransformationError(
                f"[{uuid}] original UUID {original_uuid} is not in the document store",
                uuid,
                {"original_uuid": original_uuid},
            )

        logger.info(
            f"Content placeholder {uuid} resolved to original {original_uuid}",
            transaction_id=transaction_id,
        )
        return original_uuid

    def _resolve_blog(self, trees: DocumentTrees, uuid: str, transaction_id: str) -> str:
        service_id = evaluate_string(trees.attributes, SERVICE_ID_XPATH).strip()
        ref_field = evaluate_string(trees.attributes, REF_FIELD_XPATH).strip()
        for field_name, field_value in (("serviceid", service_id), ("ref_field", ref_field)):
            if not field_value:
                logger.warning(
                    f"Blog content placeholder {uuid} can't be resolved, missing {field_name}",
                    transaction_id=transaction_id,
                )
                raise MissingRequiredFieldError(uuid, field_name)

        resolved = self.blog_resolver.resolve(service_id, ref_field, transaction_id)
        logger.info(
            f"Content placeholder {uuid} resolved to blog post {resolved}",
            transaction_id=transaction_id,
            service_id=service_id,
        )
        return resolved

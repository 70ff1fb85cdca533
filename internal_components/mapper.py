"""
Internal components mapper

Maps one source document to its InternalComponents. The call is all or
nothing: any failing stage aborts the mapping and no partial result is
returned.
"""

from datetime import datetime
from typing import Mapping

from lxml import etree

from logging_config import logger

from . import extractors
from .body import BodyPipeline
from .documents import DocumentTrees, evaluate_string
from .exceptions import (
    InternalComponentsMapperError,
    NoInternalComponentsError,
    TransformationError,
)
from .identity import BlogIdentityResolver, ExistenceChecker, IdentityResolver
from .models import (
    InternalComponents,
    SourceCode,
    SourceDocument,
    TransformationMode,
)
from .normalizer import BodyTransformer, MarkupNormalizer
from .uuids import is_valid_uuid
from .validation import EligibilityGate, PublishingValidator

OVERRIDE_ORIGINAL_XPATH = extractors.DIFTCOM_XPATH + "/OverrideOriginal"


class InternalComponentsMapper:
    """Builds InternalComponents from source documents"""

    def __init__(
        self,
        body_transformer: BodyTransformer,
        markup_normalizer: MarkupNormalizer,
        blog_uuid_resolver: BlogIdentityResolver,
        existence_checker: ExistenceChecker,
        validators: Mapping[SourceCode, PublishingValidator],
    ):
        self.markup_normalizer = markup_normalizer
        self.body_pipeline = BodyPipeline(body_transformer, markup_normalizer)
        self.identity_resolver = IdentityResolver(blog_uuid_resolver, existence_checker)
        self.eligibility_gate = EligibilityGate(validators)

    def map(
        self,
        document: SourceDocument,
        transaction_id: str,
        last_modified: datetime,
        preview: bool,
    ) -> InternalComponents:
        """
        Map a source document.

        Parameters:
            :document: the source document
            :transaction_id: publish transaction id, becomes the publish reference
            :last_modified: timestamp recorded on the result
            :preview: map for preview rather than publishing

        Raises:
            InternalComponentsMapperError: or one of its subclasses, see exceptions
        """
        logger.log_operation_start(
            "map_internal_components",
            uuid=document.uuid,
            transaction_id=transaction_id,
            preview=preview,
        )
        try:
            result = self._map(document, transaction_id, last_modified, preview)
        except InternalComponentsMapperError as e:
            logger.log_operation_end(
                "map_internal_components",
                False,
                uuid=document.uuid,
                transaction_id=transaction_id,
                error=type(e).__name__,
                message=e.message,
            )
            raise
        except (etree.LxmlError, ValueError) as e:
            logger.log_error(e, {"uuid": document.uuid, "transaction_id": transaction_id})
            raise TransformationError(
                f"[{document.uuid}] unable to map document: {e}", document.uuid
            ) from e

        logger.log_operation_end(
            "map_internal_components",
            True,
            uuid=result.uuid,
            transaction_id=transaction_id,
        )
        return result

    def _map(
        self,
        document: SourceDocument,
        transaction_id: str,
        last_modified: datetime,
        preview: bool,
    ) -> InternalComponents:
        uuid = document.uuid
        if not is_valid_uuid(uuid):
            raise TransformationError(f"[{uuid}] is not a valid UUID", uuid)

        trees = DocumentTrees.from_document(document)
        source_code = SourceCode.from_value(extractors.read_source_code(trees))

        self.eligibility_gate.check(document, source_code, transaction_id, preview)

        if source_code is SourceCode.CONTENT_PLACEHOLDER and not self._overrides_original(trees):
            raise NoInternalComponentsError(
                f"[{uuid}] content placeholder does not override its original", uuid
            )

        mode = TransformationMode.PREVIEW if preview else TransformationMode.PUBLISH

        body_xml = None
        if source_code is SourceCode.FT:
            body_xml = self.body_pipeline.process(
                trees,
                transaction_id,
                uuid,
                mode,
                extractors.determine_content_type(trees),
            )

        blocks = None
        if source_code is SourceCode.DYNAMIC_CONTENT:
            blocks = extractors.extract_blocks(
                trees,
                lambda value: self.body_pipeline.transform_block(value, transaction_id, uuid),
                uuid,
                preview,
            )

        resolved_uuid = uuid
        if source_code is SourceCode.CONTENT_PLACEHOLDER:
            resolved_uuid = str(self.identity_resolver.resolve(trees, uuid, transaction_id))
            if not is_valid_uuid(resolved_uuid):
                raise TransformationError(
                    f"[{uuid}] resolved identity is not a valid UUID: {resolved_uuid}", uuid
                )

        return InternalComponents(
            uuid=resolved_uuid,
            publish_reference=transaction_id,
            last_modified=last_modified,
            design=extractors.extract_design(trees),
            table_of_contents=extractors.extract_table_of_contents(trees),
            topper=extractors.extract_topper(trees),
            lead_images=extractors.extract_lead_images(trees),
            unpublished_content_description=extractors.extract_unpublished_content_description(
                trees, self.markup_normalizer
            ),
            body_xml=body_xml,
            blocks=blocks,
            summary=extractors.extract_summary(trees),
            push_notifications_cohort=extractors.extract_push_notifications_cohort(trees),
            push_notifications_text=extractors.extract_push_notifications_text(trees),
        )

    @staticmethod
    def _overrides_original(trees: DocumentTrees) -> bool:
        # Missing flag means override
        flag = evaluate_string(trees.attributes, OVERRIDE_ORIGINAL_XPATH).strip()
        return flag.lower() != "false"

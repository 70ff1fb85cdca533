"""
Publishing eligibility

Each source code is bound to the validator that decides whether documents of
that provenance may be published. Unknown or unregistered source codes are
never eligible.
"""

from typing import List, Mapping, Optional, Protocol

from .documents import evaluate_string, parse_xml
from .exceptions import MarkedDeletedError, NotEligibleForPublishError
from .extractors import DIFTCOM_XPATH
from .models import PublishingStatus, SourceCode, SourceDocument

MARK_DELETED_XPATH = DIFTCOM_XPATH + "/DIFTcomMarkDeleted"


class PublishingValidator(Protocol):
    def get_publishing_status(
        self, document: SourceDocument, transaction_id: str, preview: bool
    ) -> PublishingStatus:
        ...


class EligibilityGate:
    """Dispatches a document to the validator registered for its source code"""

    def __init__(self, validators: Mapping[SourceCode, PublishingValidator]):
        self.validators = dict(validators)

    def check(
        self,
        document: SourceDocument,
        source_code: Optional[SourceCode],
        transaction_id: str,
        preview: bool,
    ) -> None:
        """
        Return only if the document may be mapped.

        Raises:
            NotEligibleForPublishError: unknown source code, or INELIGIBLE status
            MarkedDeletedError: DELETED status
        """
        validator = self.validators.get(source_code) if source_code else None
        if validator is None:
            raise NotEligibleForPublishError(document.uuid, "unsupported source code")

        status = validator.get_publishing_status(document, transaction_id, preview)
        if status is PublishingStatus.INELIGIBLE:
            raise NotEligibleForPublishError(document.uuid)
        if status is PublishingStatus.DELETED:
            raise MarkedDeletedError(document.uuid)


class ArticleValidator:
    """
    Default validator based on the document's own metadata.

    A document flagged as deleted is DELETED. Outside preview, a document whose
    workflow status is not one of the eligible statuses is INELIGIBLE.
    """

    def __init__(self, eligible_workflow_statuses: List[str]):
        self.eligible_workflow_statuses = set(eligible_workflow_statuses)

    def get_publishing_status(
        self, document: SourceDocument, transaction_id: str, preview: bool
    ) -> PublishingStatus:
        attributes = parse_xml(document.attributes)
        mark_deleted = evaluate_string(attributes, MARK_DELETED_XPATH).strip()
        if mark_deleted.lower() == "true":
            return PublishingStatus.DELETED

        if not preview and document.workflow_status not in self.eligible_workflow_statuses:
            return PublishingStatus.INELIGIBLE

        return PublishingStatus.VALID

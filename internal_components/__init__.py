"""
Internal Components Mapper

Maps legacy CMS article documents (value XML plus attributes XML) to the
normalized InternalComponents record consumed by downstream publishing services.

Usage:
    import internal_components

    mapper = internal_components.InternalComponentsMapper(
        body_transformer, normalizer, blog_uuid_resolver, document_store, validators
    )
    components = mapper.map(document, transaction_id, last_modified, preview=False)

Modules:
    models: Source document, output record and enums
    documents: Secure XML parsing and path queries
    extractors: Field extraction rules
    body: Body transformation pipeline
    identity: Content placeholder identity resolution
    validation: Publishing eligibility
    clients: HTTP clients for the document store and blog UUID resolver
    normalizer: HTML5 markup normalization
    uuids: Deterministic UUID derivation
    mapper: The mapper tying it all together
"""

from .models import (
    SourceDocument,
    InternalComponents,
    PublishingStatus,
    SourceCode,
    TransformationMode,
    ImageLabel,
    Design,
    TableOfContents,
    Topper,
    Image,
    Block,
    Summary,
)

from .exceptions import (
    InternalComponentsMapperError,
    NotEligibleForPublishError,
    MarkedDeletedError,
    InvalidContentError,
    UntransformableContentError,
    MissingRequiredFieldError,
    IdentityResolutionError,
    UuidResolverError,
    NoInternalComponentsError,
    TransformationError,
    DocumentStoreApiError,
)

from .mapper import InternalComponentsMapper
from .validation import ArticleValidator, EligibilityGate
from .clients import DocumentStoreApiClient, BlogUuidResolverClient
from .normalizer import Html5SelfClosingTagProcessor, NormalizingBodyTransformer
from .uuids import Salt, derive_uuid

# Version information
__version__ = "1.0.0"


def get_version():
    """Return the package version"""
    return __version__


__all__ = [
    # Model
    "SourceDocument",
    "InternalComponents",
    "PublishingStatus",
    "SourceCode",
    "TransformationMode",
    "ImageLabel",
    "Design",
    "TableOfContents",
    "Topper",
    "Image",
    "Block",
    "Summary",
    # Errors
    "InternalComponentsMapperError",
    "NotEligibleForPublishError",
    "MarkedDeletedError",
    "InvalidContentError",
    "UntransformableContentError",
    "MissingRequiredFieldError",
    "IdentityResolutionError",
    "UuidResolverError",
    "NoInternalComponentsError",
    "TransformationError",
    "DocumentStoreApiError",
    # Collaborators
    "InternalComponentsMapper",
    "ArticleValidator",
    "EligibilityGate",
    "DocumentStoreApiClient",
    "BlogUuidResolverClient",
    "Html5SelfClosingTagProcessor",
    "NormalizingBodyTransformer",
    "Salt",
    "derive_uuid",
    # Package functions
    "get_version",
]

"""
Body transformation pipeline

transform -> validate -> derive main image UUID -> inject main image reference
"""

from typing import Any, Optional

from .documents import (
    DocumentTrees,
    evaluate_node,
    evaluate_string,
    node_to_html5,
    node_to_string,
    parse_xml,
)
from .exceptions import UntransformableContentError
from .extractors import CONTENT_PACKAGE_TYPE, DIFTCOM_XPATH, image_id_from_fileref
from .models import TransformationMode
from .normalizer import BodyTransformer, MarkupNormalizer
from .uuids import Salt, derive_uuid

BODY_TAG_XPATH = "/doc/story/text/body"
MAIN_IMAGE_FILEREF_XPATH = "/doc/lead/lead-images/web-master/@fileref"
ARTICLE_IMAGE_FLAG_XPATH = DIFTCOM_XPATH + "/DIFTcomArticleImage"

NO_PICTURE_FLAG = "No picture"
IMAGE_SET_TYPE = "http://www.ft.com/ontology/content/ImageSet"
DATA_EMBEDDED_ATTRIBUTE = "data-embedded"

START_BODY = "<body"
END_BODY = "</body>"
EMPTY_VALIDATED_BODY = "<body></body>"


def transform_field(
    original: Optional[str],
    transformer: BodyTransformer,
    transaction_id: str,
    *context: Any,
) -> str:
    """Run a non-blank field through the transformer; blank fields give an empty string"""
    if not original or not original.strip():
        return ""
    return transformer.transform(original, transaction_id, *context)


def unwrap_body(wrapped_body: str) -> str:
    """
    Return the trimmed content between <body ...> and </body>.

    Raises:
        ValueError: if the markup is not a wrapped body
    """
    wrapped_body = wrapped_body.strip()
    if not (wrapped_body.startswith(START_BODY) and wrapped_body.endswith(END_BODY)):
        raise ValueError("can't unwrap a string that is not a wrapped body")

    index = wrapped_body.index(">", len(START_BODY)) + 1
    return wrapped_body[index : len(wrapped_body) - len(END_BODY)].strip()


def validate_body(
    mode: TransformationMode,
    content_type: Optional[str],
    transformed_body: str,
    uuid: str,
) -> str:
    """
    Check the transformed body has content.

    A blank body is replaced by the canonical empty body in preview mode and for
    content packages. Anywhere else it can't be published.

    Raises:
        UntransformableContentError: if the body is blank outside those cases
    """
    if transformed_body and transformed_body.strip() and unwrap_body(transformed_body):
        return transformed_body

    if mode is TransformationMode.PREVIEW:
        return EMPTY_VALIDATED_BODY

    if content_type == CONTENT_PACKAGE_TYPE:
        return EMPTY_VALIDATED_BODY

    raise UntransformableContentError(uuid)


def generate_main_image_uuid(trees: DocumentTrees) -> Optional[str]:
    """Derive the image set UUID of the article's main image, if it has one"""
    image_uuid = image_id_from_fileref(evaluate_string(trees.value, MAIN_IMAGE_FILEREF_XPATH))
    if not image_uuid:
        return None
    return str(derive_uuid(image_uuid, Salt.IMAGE_SET))


def has_no_picture_flag(trees: DocumentTrees) -> bool:
    flag = evaluate_string(trees.attributes, ARTICLE_IMAGE_FLAG_XPATH).strip()
    return flag.lower() == NO_PICTURE_FLAG.lower()


def put_main_image_reference(
    trees: DocumentTrees,
    main_image: Optional[str],
    body: str,
    normalizer: MarkupNormalizer,
) -> str:
    """Insert the main image set reference as first child of the body"""
    if main_image is None or has_no_picture_flag(trees):
        return body

    body_node = parse_xml(body)
    reference = body_node.makeelement(
        "content",
        {"id": main_image, "type": IMAGE_SET_TYPE, DATA_EMBEDDED_ATTRIBUTE: "true"},
    )
    # The old leading text moves to the tail of the new first child
    reference.tail, body_node.text = body_node.text, None
    body_node.insert(0, reference)
    return node_to_html5(body_node, normalizer)


class BodyPipeline:
    """Turns the raw article body into its validated, published form"""

    def __init__(self, transformer: BodyTransformer, normalizer: MarkupNormalizer):
        self.transformer = transformer
        self.normalizer = normalizer

    def process(
        self,
        trees: DocumentTrees,
        transaction_id: str,
        uuid: str,
        mode: TransformationMode,
        content_type: Optional[str],
    ) -> str:
        source_body = node_to_string(evaluate_node(trees.value, BODY_TAG_XPATH))

        transformed_body = transform_field(
            source_body, self.transformer, transaction_id, ("uuid", uuid)
        )
        validated_body = validate_body(mode, content_type, transformed_body, uuid)

        main_image = generate_main_image_uuid(trees)
        return put_main_image_reference(trees, main_image, validated_body, self.normalizer)

    def transform_block(self, raw_value: str, transaction_id: str, uuid: str) -> str:
        """Transform one block value and strip its body wrapper"""
        wrapped = f"{START_BODY}>{raw_value}{END_BODY}"
        transformed = transform_field(wrapped, self.transformer, transaction_id, ("uuid", uuid))
        if not transformed or not transformed.strip():
            return ""
        return unwrap_body(transformed)

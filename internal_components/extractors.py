"""
Field extraction rules

Each extractor is an independent function over the parsed DocumentTrees with
its own presence and default policy. None of them share state.
"""

import re
from typing import Callable, Optional, Tuple

from .documents import (
    DocumentTrees,
    evaluate_node,
    evaluate_string,
    inner_markup,
)
from .exceptions import InvalidContentError
from .models import (
    Block,
    Design,
    Image,
    ImageLabel,
    Summary,
    TableOfContents,
    Topper,
)

# Value tree locations
CONTENT_PACKAGE_XPATH = "/doc/lead/lead-components/content-package"
TOPPER_XPATH = "/doc/lead/lead-components/topper"
LEAD_IMAGE_SET_XPATH = "/doc/lead/lead-image-set/lead-image-"
SUMMARY_XPATH = "/doc/lead/lead-summary"
PUSH_NOTIFICATIONS_TEXT_XPATH = "/doc/lead/push-notification-text"
BLOCKS_XPATH = "/doc/blocks"

# Attributes tree locations
DIFTCOM_XPATH = "/ObjectMetadata/OutputChannels/DIFTcom"
DESIGN_THEME_XPATH = DIFTCOM_XPATH + "/DesignTheme"
DESIGN_LAYOUT_XPATH = DIFTCOM_XPATH + "/DesignLayout"
PUSH_NOTIFICATIONS_COHORT_XPATH = DIFTCOM_XPATH + "/pushNotificationsCohort"
IS_CONTENT_PACKAGE_XPATH = DIFTCOM_XPATH + "/isContentPackage"
SOURCE_CODE_XPATH = "/ObjectMetadata/EditorialNotes/Sources/Source/SourceCode"

DEFAULT_DESIGN_THEME = "basic"
DEFAULT_DESIGN_LAYOUT = "default"
CONTENT_PACKAGE_TYPE = "ContentPackage"
IMAGE_UUID_MARKER = "uuid="

# The CMS fills empty fields with <?EM-dummyText ...?> instructions, each ending at its own ?>
DUMMY_TEXT_PATTERN = re.compile(
    r"^\s*(?:<\?EM-dummyText\b(?:(?!\?>).)*\?>\s*)+$", re.DOTALL
)

NO_PUSH_NOTIFICATIONS_COHORT = "None"
PUSH_NOTIFICATION_COHORTS = {
    "UK_breaking_news": "uk-breaking-news",
    "Global_breaking_news": "global-breaking-news",
}


def _trimmed(tree, expression: str) -> str:
    return evaluate_string(tree, expression).strip()


def is_dummy_text(value: Optional[str]) -> bool:
    """Check whether a value is one of the CMS dummy-text placeholders"""
    return bool(value) and DUMMY_TEXT_PATTERN.match(value) is not None


def read_source_code(trees: DocumentTrees) -> str:
    return _trimmed(trees.attributes, SOURCE_CODE_XPATH)


def determine_content_type(trees: DocumentTrees) -> Optional[str]:
    """Return "ContentPackage" when the attributes flag the document as one"""
    is_content_package = _trimmed(trees.attributes, IS_CONTENT_PACKAGE_XPATH)
    if is_content_package.lower() == "true":
        return CONTENT_PACKAGE_TYPE
    return None


def extract_design(trees: DocumentTrees) -> Design:
    """
    Extract the design of the article.

    The theme set in the attributes takes priority over the legacy
    content-package attribute of the value.
    """
    theme = _trimmed(trees.attributes, DESIGN_THEME_XPATH)
    if not theme:
        theme = _trimmed(trees.value, CONTENT_PACKAGE_XPATH + "/@design-theme")

    layout = _trimmed(trees.attributes, DESIGN_LAYOUT_XPATH)

    return Design(
        theme=theme or DEFAULT_DESIGN_THEME,
        layout=layout or DEFAULT_DESIGN_LAYOUT,
    )


def extract_table_of_contents(trees: DocumentTrees) -> Optional[TableOfContents]:
    sequence = _trimmed(trees.value, CONTENT_PACKAGE_XPATH + "/@sequence")
    label_type = _trimmed(trees.value, CONTENT_PACKAGE_XPATH + "/@label")

    if not sequence and not label_type:
        return None

    return TableOfContents(sequence=sequence, label_type=label_type)


def extract_topper(trees: DocumentTrees) -> Optional[Topper]:
    """A topper exists only when it has a layout"""
    layout = _trimmed(trees.value, TOPPER_XPATH + "/@layout")
    if not layout:
        return None

    return Topper(
        headline=_trimmed(trees.value, TOPPER_XPATH + "/topper-headline"),
        standfirst=_trimmed(trees.value, TOPPER_XPATH + "/topper-standfirst"),
        background_colour=_trimmed(trees.value, TOPPER_XPATH + "/@background-colour"),
        layout=layout,
    )


def image_id_from_fileref(fileref: str) -> Optional[str]:
    """Return what follows the last uuid= marker of a file reference"""
    fileref = (fileref or "").strip()
    if IMAGE_UUID_MARKER not in fileref:
        return None
    return fileref[fileref.rindex(IMAGE_UUID_MARKER) + len(IMAGE_UUID_MARKER):] or None


def extract_lead_images(trees: DocumentTrees) -> Tuple[Image, ...]:
    images = []
    for label in ImageLabel:
        fileref = evaluate_string(trees.value, f"{LEAD_IMAGE_SET_XPATH}{label.value}/@fileref")
        image_id = image_id_from_fileref(fileref)
        if image_id:
            images.append(Image(id=image_id, type=label))
    return tuple(images)


def extract_unpublished_content_description(trees: DocumentTrees, normalizer) -> Optional[str]:
    node = evaluate_node(trees.value, CONTENT_PACKAGE_XPATH + "/content-package-next")
    if node is None:
        return None

    description = normalizer.process(inner_markup(node), None)
    description = (description or "").strip()
    if not description or is_dummy_text(description):
        return None
    return description


def extract_summary(trees: DocumentTrees) -> Optional[Summary]:
    node = evaluate_node(trees.value, SUMMARY_XPATH)
    if node is None:
        return None

    display_position = (node.get("display-position") or "").strip()
    return Summary(display_position=display_position or None)


def extract_push_notifications_cohort(trees: DocumentTrees) -> Optional[str]:
    """
    Map the CMS cohort name to its published form.

    "None" and blank mean no cohort. Names missing from the table are passed
    through unchanged.
    """
    cohort = _trimmed(trees.attributes, PUSH_NOTIFICATIONS_COHORT_XPATH)
    if not cohort or cohort == NO_PUSH_NOTIFICATIONS_COHORT:
        return None
    return PUSH_NOTIFICATION_COHORTS.get(cohort, cohort)


def extract_push_notifications_text(trees: DocumentTrees) -> Optional[str]:
    node = evaluate_node(trees.value, PUSH_NOTIFICATIONS_TEXT_XPATH)
    if node is None:
        return None

    if is_dummy_text(inner_markup(node)):
        return None

    text = evaluate_string(node, ".").strip()
    if not text or is_dummy_text(text):
        return None
    return text


def extract_blocks(
    trees: DocumentTrees,
    transform: Callable[[str], str],
    uuid: str,
    preview: bool = False,
) -> Tuple[Block, ...]:
    """
    Extract the numbered html blocks of a dynamic content document.

    Parameters:
        :trees: parsed source document
        :transform: turns a block's raw markup into its unwrapped published form
        :uuid: UUID of the document, for error reporting
        :preview: a missing blocks section is tolerated in preview

    Raises:
        InvalidContentError: if the blocks section is missing outside preview,
                             or a block has no value
    """
    blocks_node = evaluate_node(trees.value, BLOCKS_XPATH)
    if blocks_node is None:
        if preview:
            return ()
        raise InvalidContentError("Dynamic content has no blocks", uuid)

    blocks = []
    index = 1
    while True:
        block_node = evaluate_node(blocks_node, f"block-{index}")
        if block_node is None:
            break

        key = evaluate_string(block_node, "block-name").strip()
        raw_value = inner_markup(evaluate_node(block_node, "block-html-value")).strip()
        value = transform(raw_value).strip() if raw_value else ""

        if not value:
            raise InvalidContentError(
                f"Block {index} has no value", uuid, {"block": index, "key": key}
            )

        blocks.append(Block(key=key, value_xml=value))
        index += 1

    return tuple(blocks)

"""
Tests for internal_components.mapper module

Tests the full mapping of source documents: eligibility, field extraction,
body processing, blocks and content placeholder identity resolution.
"""

import itertools
import unittest
import uuid as uuid_lib
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from internal_components.exceptions import (
    DocumentStoreApiError,
    InvalidContentError,
    MarkedDeletedError,
    MissingRequiredFieldError,
    NoInternalComponentsError,
    NotEligibleForPublishError,
    TransformationError,
    UntransformableContentError,
    UuidResolverError,
)
from internal_components.mapper import InternalComponentsMapper
from internal_components.models import ImageLabel, PublishingStatus, SourceCode
from internal_components.normalizer import Html5SelfClosingTagProcessor
from internal_components.uuids import Salt, derive_uuid

from article_factory import (
    ARTICLE_UUID,
    build_attributes,
    build_document,
    build_value,
)

TRANSFORMED_BODY = "<body><p>some other random text</p></body>"
EMPTY_BODY = "<body></body>"
TX_ID = "tid_test"
LAST_MODIFIED = datetime(2017, 7, 20, 10, 15, 30)
BLOG_UUID = "8e6f0bc0-1d1b-4f4e-9a38-2dbe9b0f6c5d"
SERVICE_ID = "http://ftalphaville.ft.com/?p=2193913"
REF_FIELD = "2193913"


class MapperTestCase(unittest.TestCase):
    """Shared fixtures: a mapper with fake collaborators that accept everything"""

    def setUp(self):
        """Set up test fixtures"""
        self.body_transformer = MagicMock()
        self.body_transformer.transform.return_value = TRANSFORMED_BODY

        self.blog_uuid_resolver = MagicMock()
        self.blog_uuid_resolver.resolve.return_value = BLOG_UUID

        self.document_store = MagicMock()
        self.document_store.exists.return_value = True

        self.article_validator = MagicMock()
        self.article_validator.get_publishing_status.return_value = PublishingStatus.VALID
        self.placeholder_validator = MagicMock()
        self.placeholder_validator.get_publishing_status.return_value = PublishingStatus.VALID

        self.mapper = InternalComponentsMapper(
            body_transformer=self.body_transformer,
            markup_normalizer=Html5SelfClosingTagProcessor(),
            blog_uuid_resolver=self.blog_uuid_resolver,
            existence_checker=self.document_store,
            validators={
                SourceCode.FT: self.article_validator,
                SourceCode.CONTENT_PLACEHOLDER: self.placeholder_validator,
                SourceCode.DYNAMIC_CONTENT: self.article_validator,
            },
        )

    def map(self, value=None, attributes=None, preview=False, **document_args):
        document = build_document(value=value, attributes=attributes, **document_args)
        return self.mapper.map(document, TX_ID, LAST_MODIFIED, preview)


class TestEligibility(MapperTestCase):

    def test_valid_article_is_mapped(self):
        """Test a valid FT article carries identity and publish reference"""
        actual = self.map()

        self.assertEqual(actual.uuid, ARTICLE_UUID)
        self.assertEqual(actual.publish_reference, TX_ID)
        self.assertEqual(actual.last_modified, LAST_MODIFIED)
        self.article_validator.get_publishing_status.assert_called_once()

    def test_ineligible_article_raises(self):
        """Test INELIGIBLE status stops the mapping"""
        self.article_validator.get_publishing_status.return_value = PublishingStatus.INELIGIBLE

        with self.assertRaises(NotEligibleForPublishError) as context:
            self.map()

        self.assertEqual(context.exception.uuid, ARTICLE_UUID)
        self.body_transformer.transform.assert_not_called()

    def test_deleted_article_raises(self):
        """Test DELETED status stops the mapping"""
        self.article_validator.get_publishing_status.return_value = PublishingStatus.DELETED

        with self.assertRaises(MarkedDeletedError) as context:
            self.map()

        self.assertEqual(context.exception.uuid, ARTICLE_UUID)
        self.body_transformer.transform.assert_not_called()

    def test_unknown_source_code_is_not_eligible(self):
        """Test an unknown source code is never dispatched to a validator"""
        with self.assertRaises(NotEligibleForPublishError):
            self.map(attributes=build_attributes(source_code="THIS_IS_NOT_A_GOOD_SOURCE_CODE"))

        self.article_validator.get_publishing_status.assert_not_called()
        self.placeholder_validator.get_publishing_status.assert_not_called()

    def test_unregistered_source_code_is_not_eligible(self):
        """Test a known source code without a validator is not eligible"""
        mapper = InternalComponentsMapper(
            self.body_transformer,
            Html5SelfClosingTagProcessor(),
            self.blog_uuid_resolver,
            self.document_store,
            {SourceCode.FT: self.article_validator},
        )
        document = build_document(attributes=build_attributes(source_code="DynamicContent"))

        with self.assertRaises(NotEligibleForPublishError):
            mapper.map(document, TX_ID, LAST_MODIFIED, False)

    def test_preview_flag_is_passed_to_validator(self):
        """Test the validator receives document, transaction id and preview flag"""
        document = build_document()
        self.mapper.map(document, TX_ID, LAST_MODIFIED, True)

        self.article_validator.get_publishing_status.assert_called_once_with(
            document, TX_ID, True
        )

    def test_invalid_document_uuid_raises(self):
        """Test the document identity must be a UUID"""
        with self.assertRaises(TransformationError):
            self.map(uuid="not-a-uuid")

    def test_malformed_value_raises_transformation_error(self):
        """Test parse faults are wrapped"""
        with self.assertRaises(TransformationError) as context:
            self.map(value=b"<doc><lead></doc>")

        self.assertEqual(context.exception.uuid, ARTICLE_UUID)


class TestDesign(MapperTestCase):

    def test_design_theme_from_old_source(self):
        """Test the legacy content-package theme is used when alone"""
        actual = self.map(
            value=build_value(
                content_package=True,
                old_design_theme="extra",
                table_of_contents_sequence="tableOfContentsSequence",
                table_of_contents_label_type="tableOfContentsLabelType",
            )
        )

        self.assertIsNotNone(actual.design)
        self.assertEqual(actual.design.theme, "extra")

    def test_design_theme_from_new_source_prioritised(self):
        """Test the attributes theme wins over the legacy one"""
        actual = self.map(
            value=build_value(content_package=True, old_design_theme="extra"),
            attributes=build_attributes(design_theme="extra-wide"),
        )

        self.assertEqual(actual.design.theme, "extra-wide")

    def test_design_defaults(self):
        """Test design is never None and defaults to basic/default"""
        actual = self.map()

        self.assertIsNotNone(actual.design)
        self.assertEqual(actual.design.theme, "basic")
        self.assertEqual(actual.design.layout, "default")

    def test_design_layout(self):
        """Test the design layout is read from the attributes"""
        actual = self.map(attributes=build_attributes(design_layout="wide"))

        self.assertEqual(actual.design.layout, "wide")


class TestTableOfContents(MapperTestCase):

    def test_table_of_contents(self):
        """Test sequence and label type are extracted"""
        actual = self.map(
            value=build_value(
                content_package=True,
                old_design_theme="oldDesignTheme",
                table_of_contents_sequence="exact-order",
                table_of_contents_label_type="part-number",
            )
        )

        self.assertIsNotNone(actual.table_of_contents)
        self.assertEqual(actual.table_of_contents.sequence, "exact-order")
        self.assertEqual(actual.table_of_contents.label_type, "part-number")

    def test_table_of_contents_none_if_both_blank(self):
        """Test blank sequence and label type give no table of contents"""
        actual = self.map(
            value=build_value(
                content_package=True,
                table_of_contents_sequence=" ",
                table_of_contents_label_type="",
            )
        )

        self.assertIsNone(actual.table_of_contents)

    def test_table_of_contents_present_if_one_is_set(self):
        """Test a single non-blank field is enough"""
        actual = self.map(
            value=build_value(content_package=True, table_of_contents_label_type="part-number")
        )

        self.assertIsNotNone(actual.table_of_contents)
        self.assertEqual(actual.table_of_contents.sequence, "")


class TestLeadImages(MapperTestCase):

    def test_lead_images(self):
        """Test all three lead images are mapped in order"""
        square, standard, wide = (str(uuid_lib.uuid4()) for _ in range(3))
        actual = self.map(
            value=build_value(
                lead_images={"wide": wide, "square": square, "standard": standard}
            )
        )

        self.assertEqual([image.id for image in actual.lead_images], [square, standard, wide])
        self.assertEqual(
            [image.type for image in actual.lead_images],
            [ImageLabel.SQUARE, ImageLabel.STANDARD, ImageLabel.WIDE],
        )

    def test_lead_images_order_for_every_subset(self):
        """Test any subset of labels comes out as square, standard, wide"""
        labels = ["square", "standard", "wide"]
        for size in range(len(labels) + 1):
            for subset in itertools.combinations(labels, size):
                with self.subTest(subset=subset):
                    images = {label: str(uuid_lib.uuid4()) for label in reversed(subset)}
                    actual = self.map(value=build_value(lead_images=images))

                    self.assertEqual(
                        [image.type.value for image in actual.lead_images], list(subset)
                    )
                    self.assertEqual(
                        [image.id for image in actual.lead_images],
                        [images[label] for label in subset],
                    )


class TestTopper(MapperTestCase):

    def test_topper_is_mapped(self):
        """Test a topper with layout is mapped with all fields"""
        actual = self.map(
            value=build_value(
                topper=True,
                topper_background_colour="fooBackground",
                topper_layout="barColor",
                topper_headline="foobar headline",
                topper_standfirst="foobar standfirst",
            )
        )

        self.assertEqual(actual.topper.background_colour, "fooBackground")
        self.assertEqual(actual.topper.layout, "barColor")
        self.assertEqual(actual.topper.headline, "foobar headline")
        self.assertEqual(actual.topper.standfirst, "foobar standfirst")

    def test_topper_with_empty_headline_and_standfirst(self):
        """Test headline and standfirst default to empty strings"""
        actual = self.map(
            value=build_value(
                topper=True,
                topper_background_colour="fooBackground",
                topper_layout="barColor",
            )
        )

        self.assertEqual(actual.topper.headline, "")
        self.assertEqual(actual.topper.standfirst, "")

    def test_topper_without_layout_is_none(self):
        """Test a topper without layout is dropped"""
        actual = self.map(
            value=build_value(topper=True, topper_background_colour="fooBackground")
        )

        self.assertIsNone(actual.topper)


class TestUnpublishedContentDescription(MapperTestCase):

    def map_with_next(self, content_package_next):
        return self.map(
            value=build_value(content_package=True, content_package_next=content_package_next)
        )

    def test_missing_next_gives_none(self):
        self.assertIsNone(self.map_with_next(None).unpublished_content_description)

    def test_empty_next_gives_none(self):
        self.assertIsNone(self.map_with_next("").unpublished_content_description)

    def test_blank_next_gives_none(self):
        self.assertIsNone(self.map_with_next("\t \r").unpublished_content_description)

    def test_dummy_next_gives_none(self):
        actual = self.map_with_next("<?EM-dummyText ... coming next ... ?>")
        self.assertIsNone(actual.unpublished_content_description)

    def test_unformatted_next_is_trimmed(self):
        description = " This is a unformatted description of the upcoming content "
        actual = self.map_with_next(description)
        self.assertEqual(actual.unpublished_content_description, description.strip())

    def test_formatted_next_is_preserved(self):
        description = "<p>This is a unformatted <em>description</em> of the upcoming content</p>"
        actual = self.map_with_next(description)
        self.assertEqual(actual.unpublished_content_description, description)

    def test_description_between_dummy_texts_is_kept(self):
        description = "<?EM-dummyText [a]?><p>Real next</p><?EM-dummyText [b]?>"
        actual = self.map_with_next(description)
        self.assertEqual(actual.unpublished_content_description, description)

    def test_only_dummy_texts_gives_none(self):
        actual = self.map_with_next("<?EM-dummyText [a]?> <?EM-dummyText [b]?>")
        self.assertIsNone(actual.unpublished_content_description)


class TestSummaryAndPushNotifications(MapperTestCase):

    def test_summary_display_position(self):
        actual = self.map(value=build_value(summary=True, display_position="auto"))
        self.assertEqual(actual.summary.display_position, "auto")

    def test_summary_empty_display_position_gives_none(self):
        actual = self.map(value=build_value(summary=True, display_position=""))
        self.assertIsNotNone(actual.summary)
        self.assertIsNone(actual.summary.display_position)

    def test_push_notifications_cohort(self):
        """Test cohort names are mapped through the cohort table"""
        cases = [
            ("UK_breaking_news", "uk-breaking-news"),
            ("Global_breaking_news", "global-breaking-news"),
            ("None", None),
            ("Some_new_cohort", "Some_new_cohort"),
        ]
        for cohort, expected in cases:
            with self.subTest(cohort=cohort):
                actual = self.map(attributes=build_attributes(push_notifications_cohort=cohort))
                self.assertEqual(actual.push_notifications_cohort, expected)

    def test_push_notifications_text(self):
        cases = [
            ("My push notification text", "My push notification text"),
            ("", None),
            (None, None),
            ("<?EM-dummyText [Push notification text]?>", None),
        ]
        for text, expected in cases:
            with self.subTest(text=text):
                actual = self.map(value=build_value(push_notification_text=text))
                self.assertEqual(actual.push_notifications_text, expected)


class TestBody(MapperTestCase):

    def test_body_is_transformed(self):
        """Test the raw body goes through the transformer with the transaction id"""
        actual = self.map()

        self.assertEqual(actual.body_xml, TRANSFORMED_BODY)
        args = self.body_transformer.transform.call_args[0]
        self.assertEqual(args[0], "<body><p>Some random text</p></body>")
        self.assertEqual(args[1], TX_ID)

    def test_blank_body_raises(self):
        """Test a blank transformed body can't be published"""
        self.body_transformer.transform.return_value = EMPTY_BODY

        with self.assertRaises(UntransformableContentError) as context:
            self.map()

        self.assertEqual(context.exception.uuid, ARTICLE_UUID)
        self.assertIsInstance(context.exception, InvalidContentError)

    def test_blank_body_in_preview_gives_empty_body(self):
        self.body_transformer.transform.return_value = "<body>  </body>"

        actual = self.map(preview=True)

        self.assertEqual(actual.body_xml, EMPTY_BODY)

    def test_blank_body_of_content_package_gives_empty_body(self):
        self.body_transformer.transform.return_value = EMPTY_BODY

        actual = self.map(attributes=build_attributes(is_content_package="true"))

        self.assertEqual(actual.body_xml, EMPTY_BODY)

    def test_missing_body_skips_transformer(self):
        """Test a missing raw body is not sent to the transformer"""
        actual = self.map(value=build_value(body=None), preview=True)

        self.body_transformer.transform.assert_not_called()
        self.assertEqual(actual.body_xml, EMPTY_BODY)

    def test_main_image_reference_is_injected(self):
        """Test the derived image set is referenced as first child of the body"""
        image_uuid = str(uuid_lib.uuid4())
        image_set_uuid = str(derive_uuid(image_uuid, Salt.IMAGE_SET))

        actual = self.map(value=build_value(main_image_uuid=image_uuid))

        self.assertEqual(
            actual.body_xml,
            f'<body><content id="{image_set_uuid}" '
            'type="http://www.ft.com/ontology/content/ImageSet" '
            'data-embedded="true"></content>'
            "<p>some other random text</p></body>",
        )

    def test_no_picture_flag_skips_main_image_reference(self):
        actual = self.map(
            value=build_value(main_image_uuid=str(uuid_lib.uuid4())),
            attributes=build_attributes(article_image="No picture"),
        )

        self.assertEqual(actual.body_xml, TRANSFORMED_BODY)


class TestBlocks(MapperTestCase):

    def map_dynamic_content(self, blocks, preview=False):
        return self.map(
            value=build_value(body=None, blocks=blocks),
            attributes=build_attributes(source_code="DynamicContent"),
            preview=preview,
        )

    def test_blocks_is_set(self):
        self.body_transformer.transform.return_value = "<body>x-value</body>"

        actual = self.map_dynamic_content([("x", "x-value")])

        self.assertEqual(len(actual.blocks), 1)
        self.assertEqual(actual.blocks[0].key, "x")
        self.assertEqual(actual.blocks[0].value_xml, "x-value")
        self.assertEqual(actual.blocks[0].type, "html-block")
        self.assertIsNone(actual.body_xml)

    def test_blocks_key_is_empty_value_is_set(self):
        self.body_transformer.transform.return_value = "<body>x-value</body>"

        actual = self.map_dynamic_content([("", "x-value")])

        self.assertEqual(len(actual.blocks), 1)
        self.assertEqual(actual.blocks[0].key, "")
        self.assertEqual(actual.blocks[0].value_xml, "x-value")

    def test_blocks_stop_at_first_missing_slot(self):
        self.body_transformer.transform.return_value = "<body>value</body>"

        actual = self.map_dynamic_content([("a", "1"), ("b", "2"), ("c", "3")])

        self.assertEqual([block.key for block in actual.blocks], ["a", "b", "c"])

    def test_block_with_blank_value_raises(self):
        with self.assertRaises(InvalidContentError):
            self.map_dynamic_content([("x", "")])

    def test_block_transformed_to_blank_raises(self):
        self.body_transformer.transform.return_value = EMPTY_BODY

        with self.assertRaises(InvalidContentError):
            self.map_dynamic_content([("x", "x-value")])

    def test_missing_blocks_raises(self):
        with self.assertRaises(InvalidContentError):
            self.map_dynamic_content(None)

    def test_missing_blocks_in_preview(self):
        actual = self.map_dynamic_content(None, preview=True)

        self.assertEqual(actual.blocks, ())
        self.assertIsNone(actual.body_xml)

    def test_ft_article_has_no_blocks(self):
        self.assertIsNone(self.map().blocks)


class TestContentPlaceholder(MapperTestCase):

    def map_placeholder(self, **attributes):
        return self.map(attributes=build_attributes(source_code="ContentPlaceholder", **attributes))

    def test_content_placeholder_has_no_body(self):
        actual = self.map_placeholder()

        self.assertIsNone(actual.body_xml)
        self.assertEqual(actual.uuid, ARTICLE_UUID)
        self.placeholder_validator.get_publishing_status.assert_called_once()

    def test_original_uuid_is_resolved(self):
        actual = self.map_placeholder(original_uuid=BLOG_UUID)

        self.assertEqual(actual.uuid, BLOG_UUID)
        self.assertEqual(actual.publish_reference, TX_ID)
        self.document_store.exists.assert_called_once_with(BLOG_UUID, TX_ID)

    def test_invalid_original_uuid_raises(self):
        with self.assertRaises(TransformationError):
            self.map_placeholder(original_uuid="invalidUUID")

        self.document_store.exists.assert_not_called()

    def test_original_uuid_missing_from_document_store_raises(self):
        self.document_store.exists.return_value = False

        with self.assertRaises(TransformationError):
            self.map_placeholder(original_uuid=BLOG_UUID)

    def test_document_store_failure_raises(self):
        self.document_store.exists.side_effect = DocumentStoreApiError(
            "Failed to call document store"
        )

        with self.assertRaises(TransformationError):
            self.map_placeholder(original_uuid=BLOG_UUID)

    def test_missing_category_is_not_resolved(self):
        actual = self.map_placeholder(service_id=SERVICE_ID, ref_field=REF_FIELD)

        self.assertEqual(actual.uuid, ARTICLE_UUID)
        self.blog_uuid_resolver.resolve.assert_not_called()

    def test_non_blog_category_is_not_resolved(self):
        actual = self.map_placeholder(
            service_id=SERVICE_ID, ref_field=REF_FIELD, category="notblog"
        )

        self.assertEqual(actual.uuid, ARTICLE_UUID)
        self.blog_uuid_resolver.resolve.assert_not_called()

    def test_blog_categories_are_resolved(self):
        categories = [
            "blog",
            "webchat-live-blogs",
            "webchat-live-qa",
            "webchat-markets-live",
            "fastft",
        ]
        for category in categories:
            with self.subTest(category=category):
                self.blog_uuid_resolver.resolve.reset_mock()

                actual = self.map_placeholder(
                    service_id=SERVICE_ID, ref_field=REF_FIELD, category=category
                )

                self.assertEqual(actual.uuid, BLOG_UUID)
                self.blog_uuid_resolver.resolve.assert_called_once_with(
                    SERVICE_ID, REF_FIELD, TX_ID
                )

    def test_resolver_failure_propagates(self):
        self.blog_uuid_resolver.resolve.side_effect = UuidResolverError("Can't resolve uuid")

        with self.assertRaises(UuidResolverError):
            self.map_placeholder(service_id=SERVICE_ID, ref_field=REF_FIELD, category="blog")

    def test_missing_required_fields_raise(self):
        cases = [
            {"service_id": SERVICE_ID, "ref_field": ""},
            {"service_id": SERVICE_ID},
            {"service_id": "", "ref_field": REF_FIELD},
            {"ref_field": REF_FIELD},
        ]
        for attributes in cases:
            with self.subTest(attributes=attributes):
                with self.assertRaises(MissingRequiredFieldError):
                    self.map_placeholder(category="blog", **attributes)

        self.blog_uuid_resolver.resolve.assert_not_called()

    def test_override_original_false_has_no_internal_components(self):
        with self.assertRaises(NoInternalComponentsError):
            self.map_placeholder(override_original="false")

    def test_override_original_true_is_mapped(self):
        self.assertEqual(self.map_placeholder(override_original="true").uuid, ARTICLE_UUID)

    @patch("internal_components.identity.logger")
    def test_own_identity_is_logged(self, mock_logger):
        """Test keeping the placeholder's own UUID is recorded at debug level"""
        self.map_placeholder(category="notblog")

        mock_logger.debug.assert_called_once()
        self.assertEqual(mock_logger.debug.call_args[1]["category"], "notblog")

    @patch("internal_components.identity.logger")
    def test_missing_required_field_is_logged(self, mock_logger):
        with self.assertRaises(MissingRequiredFieldError) as context:
            self.map_placeholder(category="blog", service_id=SERVICE_ID)

        self.assertEqual(context.exception.field_name, "ref_field")
        mock_logger.warning.assert_called_once()
        self.assertIn("missing ref_field", mock_logger.warning.call_args[0][0])


@pytest.mark.parametrize("preview", [True, False])
def test_ft_content_maps_in_both_modes(preview):
    """Test an FT article maps in publish and preview mode"""
    validator = MagicMock()
    validator.get_publishing_status.return_value = PublishingStatus.VALID
    transformer = MagicMock()
    transformer.transform.return_value = TRANSFORMED_BODY
    mapper = InternalComponentsMapper(
        transformer,
        Html5SelfClosingTagProcessor(),
        MagicMock(),
        MagicMock(),
        {SourceCode.FT: validator},
    )

    actual = mapper.map(build_document(), TX_ID, LAST_MODIFIED, preview)

    assert actual.body_xml == TRANSFORMED_BODY

#!/usr/bin/env python3
"""
Internal Components Mapper CLI

Command-line interface for mapping legacy CMS documents to internal components.
"""

import sys
import uuid as uuid_lib
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import click
import json

import internal_components as icm
from config import (
    BLOG_UUID_RESOLVER_URL,
    DOCUMENT_STORE_API_URL,
    ELIGIBLE_WORKFLOW_STATUSES,
    JSON_INDENT,
    LOG_DIR,
    LOG_FILE,
    LOG_TO_FILE,
    REQUEST_TIMEOUT,
)
from logging_config import logger


def build_mapper() -> icm.InternalComponentsMapper:
    """Wire the mapper with its default collaborators"""
    normalizer = icm.Html5SelfClosingTagProcessor()
    validator = icm.ArticleValidator(ELIGIBLE_WORKFLOW_STATUSES)
    return icm.InternalComponentsMapper(
        body_transformer=icm.NormalizingBodyTransformer(normalizer),
        markup_normalizer=normalizer,
        blog_uuid_resolver=icm.BlogUuidResolverClient(
            BLOG_UUID_RESOLVER_URL, REQUEST_TIMEOUT
        ),
        existence_checker=icm.DocumentStoreApiClient(
            DOCUMENT_STORE_API_URL, REQUEST_TIMEOUT
        ),
        validators={source_code: validator for source_code in icm.SourceCode},
    )


@click.group()
@click.option(
    "--log-to-file/--no-log-to-file",
    default=LOG_TO_FILE,
    help=f"Also write logs to {LOG_DIR / LOG_FILE}",
)
def main(log_to_file: bool):
    """Internal Components Mapper - map legacy CMS documents to internal components"""
    if log_to_file:
        logger.enable_file_logging()


@main.command("map")
@click.option(
    "--value",
    "value_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the document value XML",
)
@click.option(
    "--attributes",
    "attributes_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File holding the document attributes XML",
)
@click.option("--uuid", "document_uuid", required=True, help="UUID of the document")
@click.option("--type", "document_type", default="EOM::CompoundStory", help="CMS document type")
@click.option("--workflow-status", default="Stories/WebReady", help="CMS workflow status")
@click.option("--web-url", default=None, help="Web URL of the document")
@click.option("--transaction-id", default=None, help="Publish transaction id")
@click.option("--preview/--publish", default=False, help="Map for preview or for publishing")
def map_document(
    value_file: Path,
    attributes_file: Path,
    document_uuid: str,
    document_type: str,
    workflow_status: str,
    web_url: Optional[str],
    transaction_id: Optional[str],
    preview: bool,
):
    """Map one document and print its internal components as JSON"""
    transaction_id = transaction_id or f"tid_{uuid_lib.uuid4().hex[:10]}"

    document = icm.SourceDocument(
        uuid=document_uuid,
        type=document_type,
        value=value_file.read_bytes(),
        attributes=attributes_file.read_text(encoding="utf-8"),
        workflow_status=workflow_status,
        web_url=web_url,
    )

    try:
        components = build_mapper().map(
            document, transaction_id, datetime.now(timezone.utc), preview
        )
    except icm.InternalComponentsMapperError as e:
        click.echo(json.dumps(e.to_dict(), indent=JSON_INDENT))
        sys.exit(1)

    click.echo(json.dumps(components.to_dict(), indent=JSON_INDENT))


@main.command("derive-image-set")
@click.argument("image_uuid")
def derive_image_set(image_uuid: str):
    """Print the image set UUID derived from an image UUID"""
    try:
        click.echo(str(icm.derive_uuid(image_uuid, icm.Salt.IMAGE_SET)))
    except ValueError as e:
        logger.log_error(e, {"image_uuid": image_uuid})
        click.echo(f"❌ Not a valid UUID: {image_uuid}")
        sys.exit(1)


@main.command()
def version():
    """Show the mapper version"""
    click.echo(icm.get_version())


if __name__ == "__main__":
    main()

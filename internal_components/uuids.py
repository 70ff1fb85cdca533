"""
Deterministic UUID derivation

A derived UUID is the source UUID XOR-ed with the name-based (MD5) UUID of a
salt. The same source and salt always give the same result, and deriving twice
with the same salt returns the source.
"""

import hashlib
import uuid
from enum import Enum
from typing import Union


class Salt(Enum):
    """Salts used to derive secondary identifiers"""

    IMAGE_SET = "imageset"


def _salt_uuid(salt: Salt) -> uuid.UUID:
    # Same construction as a version 3 UUID built straight from bytes
    digest = hashlib.md5(salt.value.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest, version=3)


def derive_uuid(source: Union[str, uuid.UUID], salt: Salt) -> uuid.UUID:
    """Derive a secondary UUID from a source UUID and a salt

    Parameters:
        :source: UUID (or its string form) to derive from
        :salt: Salt identifying the kind of derived resource

    Raises:
        ValueError: if source is not a valid UUID
    """
    if not isinstance(source, uuid.UUID):
        source = uuid.UUID(source)
    return uuid.UUID(int=source.int ^ _salt_uuid(salt).int)


def is_valid_uuid(value: str) -> bool:
    """Check whether a string is a UUID in its canonical hyphenated form"""
    try:
        return str(uuid.UUID(value)) == value.strip().lower()
    except (TypeError, ValueError, AttributeError):
        return False

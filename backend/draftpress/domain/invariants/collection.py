import re

from draftpress.domain.exceptions import ConstraintViolation

FIELD_TYPES = {
    "text", "rich_text", "number", "boolean", "date", "color",
    "image", "file", "link", "email", "phone", "reference", "multi_reference",
}
ASSET_FIELD_TYPES = {"image", "file"}
FIELD_KEY_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


def assert_field(field):
    if field.type not in FIELD_TYPES:
        raise ConstraintViolation(f"Unsupported field type: {field.type}")

    if not field.key or not FIELD_KEY_PATTERN.match(field.key):
        raise ConstraintViolation(f"Invalid field key '{field.key}'.")

    if field.type in ("reference", "multi_reference") and not field.reference_collection_id:
        raise ConstraintViolation(f"{field.type} field must set reference_collection_id.")


def assert_collection(collection):
    if not collection.name:
        raise ConstraintViolation("Collection name is required.")

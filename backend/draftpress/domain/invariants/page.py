import re

from draftpress.domain.exceptions import ConstraintViolation
from draftpress.utils.layers import duplicate_layer_ids

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
ERROR_PAGE_CODES = {401, 404, 500}


def assert_slug(slug, *, allow_empty=False):
    if not slug:
        if allow_empty:
            return
        raise ConstraintViolation("Slug is required.")

    if not SLUG_PATTERN.match(slug):
        raise ConstraintViolation(
            f"Invalid slug '{slug}': use lowercase letters, digits and single hyphens."
        )


def assert_page(page):
    # Index pages and error pages are addressed without a slug.
    assert_slug(page.slug, allow_empty=page.is_index or page.error_page is not None)

    if page.error_page is not None and page.error_page not in ERROR_PAGE_CODES:
        raise ConstraintViolation(f"Unsupported error page code: {page.error_page}")

    if page.is_dynamic and page.is_index:
        raise ConstraintViolation("A dynamic page cannot be the folder index.")


def assert_layer_tree(layers):
    if not isinstance(layers, list):
        raise ConstraintViolation("Layers must be a list of nodes.")

    duplicates = duplicate_layer_ids(layers)
    if duplicates:
        raise ConstraintViolation(f"Duplicate layer ids: {sorted(set(map(str, duplicates)))}")

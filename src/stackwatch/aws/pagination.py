"""Drain paginated CloudFormation listings."""

from collections.abc import Iterable


def collect_pages(pages: Iterable[dict], key: str) -> list:
    """Concatenate ``page[key]`` across every page, in order.

    ``pages`` is usually a boto3 ``PageIterator``; fetch errors propagate.
    """
    items = []
    for page in pages:
        items.extend(page.get(key, []))
    return items

# src/f1_jolpica/ingestion/aggregator.py
"""
Multi-page aggregation: fetch every page of one query and merge them into a
single Response.

Pages are fetched sequentially since each offset depends on the previous page.
Before merging, the pages must prove they belong together: same namespace
info, same table kind, first page at offset 0, contiguous offsets, and the last
page reporting itself as last. Any page failure aborts the whole aggregation.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..config import MAX_PAGE_COUNT
from ..exceptions import ExceededMaxPageCountError, InconsistentResponseError, MultiPageError
from ..models.response import Pagination, Payload, Race, Response, Table, TableTag
from .fetcher import PageFetcher
from .resource import Page, Resource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MultiPageOption:
    """Whether responses spanning several pages are fetched, and up to how many pages."""

    enabled: bool = True
    max_pages: int | None = MAX_PAGE_COUNT

    @classmethod
    def disabled(cls) -> "MultiPageOption":
        return cls(enabled=False, max_pages=None)

    @classmethod
    def with_max_pages(cls, max_pages: int | None) -> "MultiPageOption":
        return cls(enabled=True, max_pages=max_pages)


def verify_is_single_page(response: Response) -> Response:
    """
    Raises:
        MultiPageError: If the response does not hold every record of the query
    """
    if not response.pagination.is_single_page:
        p = response.pagination
        raise MultiPageError(
            f"Response spans several pages (limit={p.limit}, offset={p.offset}, total={p.total})"
        )
    return response


def _page_count(pagination: Pagination) -> int:
    if pagination.limit == 0:
        raise InconsistentResponseError(
            f"Page has limit 0 but {pagination.total - pagination.offset} records remain"
        )
    return max(1, math.ceil(pagination.total / pagination.limit))


class MultiPageAggregator:
    """Drives a PageFetcher across every page of a resource."""

    def __init__(self, fetcher: PageFetcher, option: MultiPageOption | None = None) -> None:
        self.fetcher = fetcher
        self.option = option or MultiPageOption()

    def fetch(self, resource: Resource) -> Response:
        """
        Fetch a resource, following pagination as allowed by the option.

        Raises:
            MultiPageError: If the response spans pages and multi-page is disabled
            ExceededMaxPageCountError: If more pages are needed than allowed
            InconsistentResponseError: If the fetched pages do not belong together
        """
        first = self.fetcher.fetch_page(resource, Page.with_max_limit())
        if first.pagination.is_single_page:
            return first

        if not self.option.enabled:
            return verify_is_single_page(first)

        pages_needed = _page_count(first.pagination)
        self._check_page_count(pages_needed)

        logger.info(
            f"📊 {resource.kind.value}: {first.pagination.total} records "
            f"over {pages_needed} pages"
        )

        responses = [first]
        pagination = first.pagination.next_page()
        while pagination is not None:
            self._check_page_count(len(responses) + 1)
            page = Page(limit=pagination.limit, offset=pagination.offset)
            response = self.fetcher.fetch_page(resource, page)
            responses.append(response)
            pagination = response.pagination.next_page()
            if pagination is not None and pagination.limit == 0:
                raise InconsistentResponseError("Page has limit 0 but records remain")

        return concat_responses(responses)

    def _check_page_count(self, pages: int) -> None:
        max_pages = self.option.max_pages
        if max_pages is not None and pages > max_pages:
            logger.warning(f"⚠️  Response needs {pages} pages, maximum is {max_pages}")
            raise ExceededMaxPageCountError(pages, max_pages)


# --- Merging ---


def _merge_races(races: list[Race[Payload]]) -> tuple[Race[Payload], ...]:
    """
    Merge races split across pages, by identity, extending their payload lists in order.

    A schedule has no list to extend, so a repeated race keeps its first schedule.
    """
    merged: dict[tuple[Any, ...], Race[Payload]] = {}
    for race in races:
        key = race.identity()
        existing = merged.get(key)
        if existing is None:
            merged[key] = race
            continue

        lhs, rhs = existing.payload, race.payload
        if lhs is None or rhs is None or lhs.tag is not rhs.tag:
            raise InconsistentResponseError(
                f"Race {race.season}/{race.round} has mismatched payloads across pages"
            )
        if not lhs.is_list:
            # A race repeated across pages carries the same schedule; keep the first
            continue
        merged[key] = existing.with_payload(Payload(lhs.tag, lhs.value + rhs.value))
    return tuple(merged.values())


def concat_responses(responses: list[Response]) -> Response:
    """
    Merge the pages of one query into a single Response.

    The merged pagination reports every aggregated record in one page:
    ``limit`` is the number of records, ``offset`` is 0 and ``total`` is the
    last observed total (the upstream counter may move during pagination).

    Raises:
        InconsistentResponseError: If the pages do not form one contiguous result
    """
    if not responses:
        raise ValueError("Cannot concatenate an empty list of responses")

    first, last = responses[0], responses[-1]
    if first.pagination.offset != 0:
        raise InconsistentResponseError(
            f"First page starts at offset {first.pagination.offset}, expected 0"
        )
    if not last.pagination.is_last_page:
        raise InconsistentResponseError("Last fetched page is not the last page")

    for lhs, rhs in zip(responses, responses[1:]):
        if rhs.as_info() != first.as_info():
            raise InconsistentResponseError(
                f"Response info changed between pages: {first.as_info()} != {rhs.as_info()}"
            )
        if rhs.table.tag is not first.table.tag:
            raise InconsistentResponseError(
                f"Table changed between pages: '{first.table.tag.value}' != "
                f"'{rhs.table.tag.value}'"
            )
        if lhs.pagination.offset + lhs.pagination.limit != rhs.pagination.offset:
            raise InconsistentResponseError(
                f"Pages are not contiguous: offset {lhs.pagination.offset} + limit "
                f"{lhs.pagination.limit} != offset {rhs.pagination.offset}"
            )

    items = [item for response in responses for item in response.table.items]
    if first.table.tag is TableTag.RACES:
        table = Table(tag=TableTag.RACES, items=_merge_races(items))
    else:
        table = Table(tag=first.table.tag, items=tuple(items))

    records = table.record_count()
    pagination = Pagination(limit=records, offset=0, total=last.pagination.total)

    logger.info(f"✅ Merged {len(responses)} pages into {records} records")
    return Response(info=first.info, pagination=pagination, table=table)

"""
tests.test_listing

Unit tests for list-parameter parsing and page envelopes.
"""

from __future__ import annotations

import uuid

import pytest

from spac_os.db.repositories.documents import DOCUMENT_LISTING
from spac_os.db.repositories.spacs import SPAC_LISTING
from spac_os.enums import SortOrder
from spac_os.errors import RequestValidationFailed
from spac_os.listing import ListQuerySpec, PageEnvelope, parse_list_params

ORG = uuid.UUID("00000000-0000-4000-8000-0000000000aa")


def _locs(exc: RequestValidationFailed) -> list[list[str]]:
    return [d["loc"] for d in exc.details or []]


def test_defaults() -> None:
    spec = parse_list_params(SPAC_LISTING, {"organizationId": str(ORG)})

    assert spec.organization_id == ORG
    assert spec.sort_by == "createdAt"
    assert spec.sort_order is SortOrder.desc
    assert (spec.page, spec.page_size, spec.offset) == (1, 20, 0)
    assert spec.search is None and spec.status is None


def test_parses_string_values() -> None:
    spec = parse_list_params(
        SPAC_LISTING,
        {
            "organizationId": str(ORG),
            "page": "3",
            "pageSize": "25",
            "sortBy": "name",
            "sortOrder": "asc",
            "search": "  alpha ",
            "status": "SEARCHING",
            "spacId": "ignored-by-the-shared-parser",
        },
    )

    assert (spec.page, spec.page_size, spec.offset, spec.limit) == (3, 25, 50, 25)
    assert spec.sort_by == "name"
    assert spec.sort_order is SortOrder.asc
    assert spec.search == "alpha"
    assert spec.status == "SEARCHING"


@pytest.mark.parametrize(
    ("params", "loc"),
    [
        ({}, ["organizationId"]),
        ({"organizationId": "nope"}, ["organizationId"]),
        ({"organizationId": str(ORG), "pageSize": "500"}, ["pageSize"]),
        ({"organizationId": str(ORG), "page": "0"}, ["page"]),
        ({"organizationId": str(ORG), "sortOrder": "sideways"}, ["sortOrder"]),
        ({"organizationId": str(ORG), "search": "x" * 201}, ["search"]),
        ({"organizationId": str(ORG), "sortBy": "password"}, ["sortBy"]),
        ({"organizationId": str(ORG), "status": "ON_FIRE"}, ["status"]),
    ],
)
def test_rejects_invalid_input(params, loc) -> None:
    with pytest.raises(RequestValidationFailed) as exc_info:
        parse_list_params(SPAC_LISTING, params)

    assert exc_info.value.status_code == 400
    assert loc in _locs(exc_info.value)


def test_sort_field_allow_list_is_per_entity() -> None:
    # `ipoAmount` is a SPAC column, not a document one.
    parse_list_params(SPAC_LISTING, {"organizationId": str(ORG), "sortBy": "ipoAmount"})
    with pytest.raises(RequestValidationFailed):
        parse_list_params(DOCUMENT_LISTING, {"organizationId": str(ORG), "sortBy": "ipoAmount"})


def test_document_status_filters_by_category() -> None:
    spec = parse_list_params(DOCUMENT_LISTING, {"organizationId": str(ORG), "status": "LEGAL"})
    assert spec.status == "LEGAL"


def test_blank_search_means_no_search() -> None:
    spec = parse_list_params(SPAC_LISTING, {"organizationId": str(ORG), "search": "   "})
    assert spec.search is None


def test_programmatic_spec_is_clamped() -> None:
    spec = ListQuerySpec(organization_id=ORG, sort_by="name", page=0, page_size=500)
    assert (spec.page, spec.page_size) == (1, 100)


def test_page_envelope() -> None:
    page = PageEnvelope(items=[1, 2], total=45, page=3, page_size=20)
    assert page.total_pages == 3

    doubled = page.map(lambda i: i * 2)
    assert doubled.to_dict() == {
        "items": [2, 4],
        "total": 45,
        "page": 3,
        "pageSize": 20,
        "totalPages": 3,
    }
    assert PageEnvelope(items=[], total=0, page=1, page_size=20).total_pages == 0

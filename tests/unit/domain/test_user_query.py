"""Unit tests for UserQuery normalization and pagination math."""

import pytest

from usersvc.domain.user import Pagination, SortOrder, UserQuery, UserSortField


class TestUserQueryCreate:
    """Tests for UserQuery.create defaults and clamping."""

    def test_defaults(self):
        query = UserQuery.create()

        assert query.page == 1
        assert query.limit == 10
        assert query.sort_by is UserSortField.CREATED_AT
        assert query.sort_order is SortOrder.DESC
        assert not query.has_filters

    @pytest.mark.parametrize(
        ("page", "expected"),
        [(0, 1), (-3, 1), (1, 1), (7, 7)],
    )
    def test_page_is_clamped_to_one(self, page, expected):
        assert UserQuery.create(page=page).page == expected

    @pytest.mark.parametrize(
        ("limit", "expected"),
        [(0, 1), (-5, 1), (10, 10), (100, 100), (101, 100), (5000, 100)],
    )
    def test_limit_is_clamped(self, limit, expected):
        assert UserQuery.create(limit=limit).limit == expected

    def test_empty_text_filters_are_ignored(self):
        query = UserQuery.create(name="", email="")

        assert query.name is None
        assert query.email is None
        assert not query.has_filters

    def test_filters_are_kept(self):
        query = UserQuery.create(name="ann", min_age=20, max_age=40)

        assert query.has_filters
        assert (query.name, query.min_age, query.max_age) == ("ann", 20, 40)

    def test_huge_page_is_capped(self):
        query = UserQuery.create(page=10**20, limit=100)

        assert query.page == 2**31 - 1
        assert query.offset < 2**63

    @pytest.mark.parametrize(
        ("min_age", "max_age", "expected"),
        [
            (10**20, None, (101, None)),
            (None, 10**20, (None, 101)),
            (-(10**20), -5, (-1, -1)),
            (0, 100, (0, 100)),
        ],
    )
    def test_age_bounds_are_pulled_into_range(self, min_age, max_age, expected):
        query = UserQuery.create(min_age=min_age, max_age=max_age)

        assert (query.min_age, query.max_age) == expected

    def test_offset(self):
        assert UserQuery.create(page=3, limit=10).offset == 20
        assert UserQuery.create(page=1, limit=25).offset == 0


class TestSortParsing:
    """Tests for the lenient sort parameter parsing."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("name", UserSortField.NAME),
            ("EMAIL", UserSortField.EMAIL),
            ("age", UserSortField.AGE),
            ("created_at", UserSortField.CREATED_AT),
            ("password", UserSortField.CREATED_AT),
            ("name; DROP TABLE users", UserSortField.CREATED_AT),
            (None, UserSortField.CREATED_AT),
        ],
    )
    def test_sort_field(self, raw, expected):
        assert UserSortField.parse(raw) is expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("ASC", SortOrder.ASC),
            ("asc", SortOrder.ASC),
            ("DESC", SortOrder.DESC),
            ("sideways", SortOrder.DESC),
            (None, SortOrder.DESC),
        ],
    )
    def test_sort_order(self, raw, expected):
        assert SortOrder.parse(raw) is expected


class TestPagination:
    """Tests for Pagination.compute."""

    def test_middle_page(self):
        pagination = Pagination.compute(page=2, limit=10, total=25)

        assert pagination.total_pages == 3
        assert pagination.has_next
        assert pagination.has_prev

    def test_last_page(self):
        pagination = Pagination.compute(page=3, limit=10, total=25)

        assert not pagination.has_next
        assert pagination.has_prev

    def test_exact_multiple(self):
        assert Pagination.compute(page=1, limit=10, total=20).total_pages == 2

    def test_empty_result(self):
        pagination = Pagination.compute(page=1, limit=10, total=0)

        assert pagination.total_pages == 0
        assert not pagination.has_next
        assert not pagination.has_prev

    def test_page_beyond_the_end(self):
        pagination = Pagination.compute(page=9, limit=10, total=5)

        assert pagination.total_pages == 1
        assert not pagination.has_next
        assert pagination.has_prev

"""Tests for LimitOffset windows and the Page envelope invariants."""

import pytest
from pydantic import ValidationError

from changeledger.models import UpdateToken
from changeledger.updates.pagination import ConsistencyError, LimitOffset, Page
from tests.fixtures import T_10, make_entity_id


def _tokens(n: int) -> list[UpdateToken]:
    return [UpdateToken(entity_id=make_entity_id(i), occurred_at=T_10) for i in range(1, n + 1)]


class TestLimitOffset:
    def test_all_is_unbounded(self):
        assert LimitOffset.ALL.unbounded
        assert LimitOffset.ALL.offset == 0

    def test_window_skips_then_takes(self):
        assert LimitOffset(limit=2, offset=1).window([1, 2, 3, 4]) == [2, 3]

    def test_window_unbounded_takes_rest(self):
        assert LimitOffset(limit=None, offset=2).window([1, 2, 3, 4]) == [3, 4]

    def test_window_offset_beyond_end(self):
        assert LimitOffset(limit=10, offset=10).window([1, 2, 3]) == []

    def test_window_zero_limit(self):
        assert LimitOffset(limit=0, offset=0).window([1, 2, 3]) == []

    @pytest.mark.parametrize("kwargs", [{"limit": -1}, {"offset": -1}])
    def test_negative_values_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            LimitOffset(**kwargs)


class TestPageEnvelope:
    def test_valid_page(self):
        page = Page[UpdateToken].of(_tokens(2), 5, LimitOffset(limit=2, offset=0))
        assert len(page.results) == 2
        assert page.total == 5
        assert page.limit_offset.limit == 2

    def test_unbounded_page_any_size(self):
        page = Page[UpdateToken].of(_tokens(50), 50, LimitOffset.ALL)
        assert len(page.results) == 50

    def test_results_over_limit_is_consistency_error(self):
        with pytest.raises(ConsistencyError):
            Page[UpdateToken].of(_tokens(3), 3, LimitOffset(limit=2, offset=0))

    def test_total_under_results_is_consistency_error(self):
        with pytest.raises(ConsistencyError):
            Page[UpdateToken].of(_tokens(3), 2, LimitOffset.ALL)

    def test_negative_total_is_consistency_error(self):
        with pytest.raises(ConsistencyError):
            Page[UpdateToken].of([], -1, LimitOffset.ALL)

    def test_empty(self):
        page = Page[UpdateToken].empty(LimitOffset(limit=100, offset=0))
        assert page.results == []
        assert page.total == 0

    def test_serializes_envelope(self):
        page = Page[UpdateToken].of(_tokens(1), 3, LimitOffset(limit=1, offset=2))
        data = page.model_dump(mode="json")
        assert data["total"] == 3
        assert data["limit_offset"] == {"limit": 1, "offset": 2}
        assert data["results"][0]["kind"] == "token"

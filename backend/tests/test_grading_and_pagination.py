import pytest

from university.models import GradeStatus
from university.utils.grading import compute_final_grade
from university.utils.pagination import PageParams, build_pagination


@pytest.mark.parametrize("partials,expected", [
    ((10, 10, 10), (10.0, GradeStatus.APPROVED)),
    ((6, 6, 6), (6.0, GradeStatus.APPROVED)),
    ((6, 6, 5.9), (pytest.approx(17.9 / 3), GradeStatus.FAILED)),
    ((0, 0, 0), (0.0, GradeStatus.FAILED)),
])
def test_compute_final_grade(partials, expected):
    assert compute_final_grade(*partials) == expected


def test_any_missing_partial_is_pending():
    assert compute_final_grade(None, 9, 9) == (None, GradeStatus.PENDING)
    assert compute_final_grade(9, 9, None) == (None, GradeStatus.PENDING)


def test_zero_is_a_present_partial():
    final, status = compute_final_grade(0, 9, 9)
    assert final == pytest.approx(6.0)
    assert status == GradeStatus.APPROVED


def test_custom_passing_threshold():
    assert compute_final_grade(7, 7, 7, passing=7.5)[1] == GradeStatus.FAILED


def test_build_pagination():
    assert build_pagination(0, 1, 10) == {"total": 0, "page": 1, "limit": 10, "total_pages": 0}
    assert build_pagination(21, 3, 10)["total_pages"] == 3
    assert build_pagination(20, 2, 10)["total_pages"] == 2


def test_page_params_offset_and_search():
    params = PageParams(page=3, limit=25, order="asc", search="  ana ")
    assert params.offset == 50
    assert params.descending is False
    assert params.search_term == "ana"
    assert PageParams(search="   ").search_term is None

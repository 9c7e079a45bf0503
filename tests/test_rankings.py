import pytest

from scorecard import rankings as rk


@pytest.fixture
def school_rankings(store):
    return {r["unit_id"]: r for r in rk.build_school_rankings(store.school_aggregates(), store.ranking_programs())}


@pytest.mark.unit
def test_net_price_by_ownership():
    assert rk.net_price({"ownership": 1, "net_price_public": 15000, "cost_attendance": 30000}) == 15000
    assert rk.net_price({"ownership": 2, "net_price_private": 20000, "cost_attendance": 80000}) == 20000
    assert rk.net_price({"ownership": 1, "net_price_public": None, "cost_attendance": 30000}) == 30000
    assert rk.net_price({"ownership": 3, "net_price_public": 9000, "cost_attendance": 40000}) == 40000


@pytest.mark.unit
def test_payback_and_multiple_guard_zero():
    assert rk.payback_years(80000, 40000) == 2
    assert rk.payback_years(80000, 0) is None
    assert rk.payback_years(None, 40000) is None
    assert rk.earnings_multiple(60000, 30000) == 2
    assert rk.earnings_multiple(60000, None) is None


@pytest.mark.unit
def test_weighted_earnings_and_roi(school_rankings):
    tech = school_rankings[200]
    # (80000*200 + 40000*100 + 60000*300) / 600
    assert tech["weighted_earn_1yr"] == pytest.approx(63333.33, rel=1e-6)
    # (110000*150 + 60000*80 + 85000*250) / 480
    assert tech["weighted_earn_5yr"] == pytest.approx(88645.83, rel=1e-6)
    assert tech["net_price"] == 15000
    assert tech["payback_years"] == pytest.approx(15000 * 4 / tech["weighted_earn_1yr"])
    assert tech["roi"] == pytest.approx(tech["weighted_earn_1yr"] / 30000)
    assert tech["top_program"] == "Computer Science"
    assert tech["program_count"] == 3
    assert tech["median_earn_1yr"] == 60000
    assert tech["display_tier"] == "General"


@pytest.mark.unit
def test_missing_count_weights_as_one(school_rankings):
    open_college = school_rankings[300]
    assert open_college["weighted_earn_1yr"] == 50000
    assert open_college["weighted_earn_5yr"] is None
    assert open_college["net_price"] == 40000
    assert open_college["sat_combined"] is None
    assert school_rankings[100]["display_tier"] == "Ivy League"
    assert school_rankings[100]["sat_combined"] == 1580


@pytest.mark.unit
def test_program_rows_for_table_drops_rows_without_earnings():
    rows = rk.program_rows_for_table([
        {"unit_id": 1, "school_name": "A", "cip_title": "Math.", "earn_1yr": 50000,
         "earn_5yr": None, "cost_attendance": 25000, "admission_rate": 0.9, "size": 10},
        {"unit_id": 2, "school_name": "B", "cip_title": "Math.", "earn_1yr": None, "earn_5yr": None},
    ])
    assert len(rows) == 1
    assert rows[0]["cip_title"] == "Math"
    assert rows[0]["multiple"] == 2
    assert rows[0]["display_tier"] == "General"


@pytest.mark.unit
def test_filter_rows_combines_filters():
    rows = [
        {"name": "Alpha State", "ownership": 1, "state": "OH", "display_tier": "General", "program_count": 9},
        {"name": "Beta College", "ownership": 2, "state": "OH", "display_tier": "Elite", "program_count": 2},
        {"name": "Gamma Tech", "ownership": 1, "state": "CA", "display_tier": "General", "program_count": 7},
    ]
    assert [r["name"] for r in rk.filter_rows(rows, min_count=5, count_field="program_count")] == \
        ["Alpha State", "Gamma Tech"]
    assert [r["name"] for r in rk.filter_rows(rows, search="  beta ")] == ["Beta College"]
    assert [r["name"] for r in rk.filter_rows(rows, ownership=1, state="CA")] == ["Gamma Tech"]
    assert [r["name"] for r in rk.filter_rows(rows, tiers=["Elite"])] == ["Beta College"]
    assert rk.filter_rows(rows) == rows


@pytest.mark.unit
def test_filter_rows_sat_and_admission_need_values():
    rows = [
        {"sat_combined": 1400, "admission_rate": 0.2},
        {"sat_combined": None, "admission_rate": 0.1},
        {"sat_combined": 1200, "admission_rate": None},
    ]
    assert rk.filter_rows(rows, min_sat=1300) == [rows[0]]
    assert rk.filter_rows(rows, max_admission=0.15) == [rows[1]]


@pytest.mark.unit
def test_sort_rows_nulls_last_both_directions():
    rows = [{"v": 2}, {"v": None}, {"v": 3}, {"v": 1}]
    assert [r["v"] for r in rk.sort_rows(rows, "v", "desc")] == [3, 2, 1, None]
    assert [r["v"] for r in rk.sort_rows(rows, "v", "asc")] == [1, 2, 3, None]


@pytest.mark.unit
def test_sort_rows_text_case_insensitive_and_stable():
    rows = [{"n": "beta", "i": 1}, {"n": "Alpha", "i": 2}, {"n": "alpha", "i": 3}]
    assert [r["i"] for r in rk.sort_rows(rows, "n", "asc")] == [2, 3, 1]


@pytest.mark.unit
def test_default_direction():
    assert rk.default_direction("name", ["name"]) == "asc"
    assert rk.default_direction("roi", ["name"]) == "desc"


@pytest.mark.unit
def test_paginate_clamps_page():
    rows = [{"i": i} for i in range(60)]
    page = rk.paginate(rows, 3)
    assert page.number == 3
    assert page.total_pages == 3
    assert [r["i"] for r in page.rows] == list(range(50, 60))
    assert page.offset == 50
    assert rk.paginate(rows, 99).number == 3
    assert rk.paginate(rows, -1).number == 1
    empty = rk.paginate([], 1)
    assert empty.total_pages == 1 and empty.rows == []


@pytest.mark.unit
def test_page_numbers_window():
    assert rk.page_numbers(1, 3) == [1, 2, 3]
    assert rk.page_numbers(1, 10) == [1, 2, 3, 4, 5]
    assert rk.page_numbers(6, 10) == [4, 5, 6, 7, 8]
    assert rk.page_numbers(10, 10) == [6, 7, 8, 9, 10]


@pytest.mark.unit
def test_compare_ids_unique_and_capped():
    assert rk.compare_ids(["1", "x", "2", "1", "3", "4", "5"]) == [1, 2, 3, 4]
    assert rk.compare_ids(["1107", "1107", "5201"], parse=str) == ["1107", "5201"]


@pytest.mark.unit
def test_rank_and_best_by():
    rows = [{"v": 1}, {"v": None}, {"v": 5}, {"v": 5}]
    assert [r["rank"] for r in rk.rank(rows)] == [1, 2, 3, 4]
    assert rk.best_by(rows, "v") is rows[2]
    assert rk.best_by([{"v": None}], "v") is None

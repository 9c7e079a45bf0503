import json

import pytest


def _chart(s, testid):
    canvas = s.select_one(f'[data-testid="{testid}"] canvas')
    return json.loads(canvas["data-chart"])


@pytest.mark.web
def test_home_defaults_to_explorer_with_robust_major(client, soup):
    r = client.get("/")
    assert r.status_code == 200
    s = soup(r.data)
    assert s.select_one('[data-testid="tab-explorer"]')["aria-selected"] == "true"
    selected = s.select_one('[data-testid="major-select"] option[selected]')
    # first major (by 1-yr median) offered at 100+ schools
    assert selected["value"] == "1107"
    assert "Computer Science (120)" in selected.text
    rows = s.select('[data-testid="explorer-row"]')
    assert [r.select("td")[1].text.strip() for r in rows] == [
        "Harvard University", "State Tech", "Open College",
    ]


@pytest.mark.web
def test_explorer_chart_groups_by_tier(client, soup):
    s = soup(client.get("/?tab=explorer&cip=1107").data)
    chart = _chart(s, "explorer-chart")
    labels = [series["label"] for series in chart["series"]]
    assert labels == ["Ivy League", "General"]
    assert chart["dimmed"] == []


@pytest.mark.web
def test_explorer_filters(client, soup):
    s = soup(client.get("/?tab=explorer&cip=1107&ownership=1").data)
    assert [r.select("td")[1].text.strip() for r in s.select('[data-testid="explorer-row"]')] == ["State Tech"]
    assert "Showing 1 of 3" in s.select_one('[data-testid="explorer-count"]').text

    s = soup(client.get("/?tab=explorer&cip=1107&max_adm=10").data)
    assert [r.select("td")[1].text.strip() for r in s.select('[data-testid="explorer-row"]')] == ["Harvard University"]


@pytest.mark.web
def test_majors_tab_default_filters_and_sort(client, soup):
    s = soup(client.get("/?tab=majors").data)
    names = [r.select("td")[1].a.text.strip() for r in s.select('[data-testid="major-row"]')]
    # min 10 schools, sorted by 5-yr median
    assert names == ["Computer Science", "Business Administration", "Liberal Arts and Sciences"]
    assert "Computer Science" in s.select_one('[data-testid="stat-highest"]').text

    s = soup(client.get("/?tab=majors&min_schools=50&sort=cip_title").data)
    names = [r.select("td")[1].a.text.strip() for r in s.select('[data-testid="major-row"]')]
    assert names == ["Business Administration", "Computer Science"]


@pytest.mark.web
def test_majors_tab_category_and_compare(client, soup):
    s = soup(client.get("/?tab=majors&category=Business&compare=5201&compare=1107").data)
    assert len(s.select('[data-testid="major-row"]')) == 1
    panel = s.select_one('[data-testid="compare-panel"]')
    assert "Business Administration" in panel.text
    # compared majors outside the filtered set are not shown
    assert "Computer Science" not in panel.text


@pytest.mark.web
def test_colleges_tab_rankings(client, soup):
    s = soup(client.get("/?tab=colleges&min_programs=1").data)
    rows = s.select('[data-testid="college-row"]')
    assert [r.select("td")[1].a.text.strip() for r in rows] == [
        "Harvard University", "State Tech", "Open College",
    ]
    assert "$63,333" in rows[1].text
    assert "Harvard University" in s.select_one('[data-testid="stat-highest"]').text


@pytest.mark.web
def test_colleges_min_programs_default_hides_small_schools(client, soup):
    s = soup(client.get("/?tab=colleges").data)
    assert s.select('[data-testid="college-row"]') == []
    assert "No schools match" in s.select_one('[data-testid="colleges-table"]').text


@pytest.mark.web
def test_colleges_filters_dim_the_rest_of_the_chart(client, soup):
    s = soup(client.get("/?tab=colleges&min_programs=1&state=IL").data)
    chart = _chart(s, "colleges-chart")
    highlighted = [p["id"] for series in chart["series"] for p in series["points"]]
    assert highlighted == [200]
    assert {p["id"] for p in chart["dimmed"]} == {100}


@pytest.mark.web
def test_sort_links_toggle_direction(client, soup):
    s = soup(client.get("/?tab=majors&sort=growth_rate&dir=desc").data)
    header = s.select_one('th[data-sort="growth_rate"]')
    assert header["aria-sort"] == "descending"
    assert "dir=asc" in header.a["href"]


@pytest.mark.web
def test_major_detail(client, soup):
    r = client.get("/majors/1107")
    assert r.status_code == 200
    s = soup(r.data)
    assert s.select_one("h1").text.strip() == "Computer Science"
    assert "offered at 120 schools" in s.select_one('[data-testid="major-description"]').text
    rows = s.select('[data-testid="program-row"]')
    assert len(rows) == 3
    assert "earn-above" in rows[0].select("td")[4]["class"]
    chart = _chart(s, "major-chart")
    assert chart["median"] == 80000


@pytest.mark.web
def test_major_detail_tier_filter(client, soup):
    s = soup(client.get("/majors/1107?tier=Ivy+League").data)
    rows = s.select('[data-testid="program-row"]')
    assert [r.select("td")[1].text.strip() for r in rows] == ["Harvard University"]


@pytest.mark.web
def test_major_detail_missing_is_404(client, soup):
    r = client.get("/majors/9999")
    assert r.status_code == 404
    assert soup(r.data).select_one('[data-testid="not-found"]')


@pytest.mark.web
def test_school_detail(client, soup):
    r = client.get("/schools/200")
    assert r.status_code == 200
    s = soup(r.data)
    assert s.select_one("h1").text.strip() == "State Tech"
    assert "$15,000" in s.select_one('[data-testid="stat-net-price"]').text
    assert "1,350" in s.select_one('[data-testid="stat-sat"]').text
    titles = [r.select("td")[1].text.strip() for r in s.select('[data-testid="program-row"]')]
    assert titles == ["Computer Science", "Business Administration", "Liberal Arts and Sciences"]

    s = soup(client.get("/schools/200?sort=cip_title").data)
    titles = [r.select("td")[1].text.strip() for r in s.select('[data-testid="program-row"]')]
    assert titles[0] == "Business Administration"


@pytest.mark.web
@pytest.mark.parametrize("path", ["/schools/999", "/schools/not-a-number"])
def test_school_detail_missing_is_404(client, path):
    assert client.get(path).status_code == 404


@pytest.mark.web
def test_analytics_dashboard(client, soup):
    s = soup(client.get("/analytics").data)
    assert "3" in s.select_one('[data-testid="total-sessions"]').text
    assert "12" in s.select_one('[data-testid="total-events"]').text
    assert "5" in s.select_one('[data-testid="total-page-views"]').text
    assert "2" in s.select_one('[data-testid="total-searches"]').text
    assert "State Tech" in s.select_one('[data-testid="top-clicked"]').text
    assert "nursing" in s.select_one('[data-testid="top-searches"]').text


@pytest.mark.web
@pytest.mark.parametrize("path,testid", [
    ("/about", "about"),
    ("/privacy", "privacy"),
    ("/terms", "terms"),
])
def test_static_pages(client, soup, path, testid):
    r = client.get(path)
    assert r.status_code == 200
    assert soup(r.data).select_one(f'[data-testid="{testid}"]')


@pytest.mark.web
def test_unknown_page_renders_not_found(client, soup):
    r = client.get("/nowhere")
    assert r.status_code == 404
    assert "Page not found" in soup(r.data).text

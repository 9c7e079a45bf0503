"""
Flask app for the College Scorecard explorer.

- Factory: create_app(config=None)
- Pages:
    GET /                   -> tabs: explorer | majors | colleges (?tab=)
    GET /majors/<cip>       -> one major across schools
    GET /schools/<unit_id>  -> one school's programs
    GET /analytics          -> telemetry dashboard
    GET /about, /privacy, /terms
- JSON API:
    GET  /api/majors, /api/schools, /api/programs
    POST /api/analytics     -> batched client events
    POST /api/newsletter    -> email signup
- Dependency Injection via app.config: STORE (anything with the
  PostgresStore methods); defaults to PostgresStore(DATABASE_URL)
"""

from __future__ import annotations

import logging
from types import SimpleNamespace
from typing import Any

from flask import Flask, abort, jsonify, render_template, request, url_for

from scorecard import config as settings
from scorecard import pages
from scorecard.analytics import BatchError, entity_label, summarize, to_rows, validate_batch
from scorecard.cip import CIP_CATEGORY_COLORS
from scorecard.formatters import FILTERS, earnings_color
from scorecard.newsletter import SignupError, parse_signup
from scorecard.rankings import build_school_rankings
from scorecard.rate_limit import RateLimiter, client_ip
from scorecard.store import PostgresStore
from scorecard.tiers import tier_color

log = logging.getLogger(__name__)

CACHE_PUBLIC = "public, s-maxage=86400, stale-while-revalidate=604800"
ANALYTICS_WINDOW, ANALYTICS_MAX = 60, 100
NEWSLETTER_WINDOW, NEWSLETTER_MAX = 60, 5


# ---------------- helpers ----------------

def _cached(payload: Any, cache: str = CACHE_PUBLIC):
    resp = jsonify(payload)
    resp.headers["Cache-Control"] = cache
    return resp


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _parse_unit_id(raw: Any) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _url_with(**changes) -> str:
    """Current URL with some query args replaced (None drops the arg)."""
    args = request.args.to_dict(flat=False)
    for key, value in changes.items():
        if value is None or value == []:
            args.pop(key, None)
        else:
            args[key] = value if isinstance(value, list) else [value]
    return url_for(request.endpoint, **(request.view_args or {}), **args)


def _toggle_compare(key: Any) -> str:
    current = request.args.getlist("compare")
    key = str(key)
    if key in current:
        current = [c for c in current if c != key]
    else:
        current = current + [key]
    return _url_with(compare=current, page=None)


# --------------- factory ---------------

def create_app(config: dict | None = None) -> Flask:
    settings.load_env()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.update(
        TESTING=False,
        DATABASE_URL=settings.database_url(),
        STORE=None,          # injected in tests; PostgresStore otherwise
        EXCLUDED_IP=settings.excluded_ip(),
        PRODUCTION=settings.is_production(),
    )
    if config:
        app.config.update(config)
    if app.config["STORE"] is None:
        app.config["STORE"] = PostgresStore(app.config["DATABASE_URL"])

    app.state = getattr(app, "state", SimpleNamespace())
    app.state.analytics_limiter = RateLimiter(ANALYTICS_WINDOW, ANALYTICS_MAX)
    app.state.newsletter_limiter = RateLimiter(NEWSLETTER_WINDOW, NEWSLETTER_MAX)

    app.jinja_env.filters.update(FILTERS)
    app.jinja_env.globals.update(
        tier_color=tier_color,
        category_color=lambda c: CIP_CATEGORY_COLORS.get(c, "#6b7280"),
        earnings_color=earnings_color,
        url_with=_url_with,
        toggle_compare=_toggle_compare,
    )

    def store():
        return app.config["STORE"]

    # --------------- pages ---------------

    @app.get("/")
    def index():
        """Home page with three tabs driven by ``?tab=``."""
        tab = request.args.get("tab", "explorer")
        if tab not in pages.TABS:
            tab = "explorer"
        majors = store().list_majors()
        ctx: dict[str, Any] = {"tab": tab, "title": "Major Payoff"}

        if tab == "explorer":
            cip_code = request.args.get("cip") or pages.pick_default_major(majors)
            programs = store().programs(cip_code=cip_code) if cip_code else []
            ctx.update(pages.explorer_view(majors, programs, request.args, cip_code))
        elif tab == "majors":
            ctx.update(pages.majors_view(majors, request.args))
        else:
            rankings = build_school_rankings(store().school_aggregates(), store().ranking_programs())
            ctx.update(pages.colleges_view(rankings, request.args))
        return render_template("index.html", **ctx)

    @app.get("/majors/<cip_code>")
    def major_detail(cip_code: str):
        major = store().get_major(cip_code)
        if major is None:
            abort(404)
        ctx = pages.major_detail_view(major, store().programs(cip_code=cip_code), request.args)
        return render_template("major.html", title=ctx["major"]["cip_title"], **ctx)

    @app.get("/schools/<unit_id>")
    def school_detail(unit_id: str):
        uid = _parse_unit_id(unit_id)
        school = store().get_school(uid) if uid is not None else None
        if school is None:
            abort(404)
        ctx = pages.school_detail_view(school, store().programs(unit_id=uid), request.args)
        return render_template("school.html", title=school["name"], **ctx)

    @app.get("/analytics")
    def analytics_page():
        data = store().analytics_dashboard()
        top_clicked = [
            {"label": entity_label(r["label"]), "cnt": r["cnt"]} for r in data.get("top_clicked", [])
        ]
        return render_template(
            "analytics.html",
            title="Analytics",
            totals=summarize(data.get("overview", {}), data.get("breakdown", [])),
            daily=data.get("daily", []),
            top_pages=data.get("top_pages", []),
            top_searches=data.get("top_searches", []),
            breakdown=data.get("breakdown", []),
            top_clicked=top_clicked,
        )

    @app.get("/about")
    def about():
        return render_template("about.html", title="About")

    @app.get("/privacy")
    def privacy():
        return render_template("privacy.html", title="Privacy Policy")

    @app.get("/terms")
    def terms():
        return render_template("terms.html", title="Terms of Use")

    @app.get("/health")
    def health():
        return jsonify({"ok": True}), 200

    # --------------- JSON API ---------------

    @app.get("/api/majors")
    def api_majors():
        return _cached({"data": store().list_majors()})

    @app.get("/api/schools")
    def api_schools():
        """Search index, or one school with ``?id=``."""
        raw = request.args.get("id")
        if raw is None:
            return _cached({"data": store().list_schools()})
        uid = _parse_unit_id(raw)
        if uid is None:
            return _error("Invalid school ID", 400)
        school = store().get_school(uid)
        if school is None:
            return _error("School not found", 404)
        return _cached({"data": school})

    @app.get("/api/programs")
    def api_programs():
        cip = request.args.get("cip")
        raw_school = request.args.get("school")
        if not cip and not raw_school:
            return _error("Provide cip or school parameter", 400)
        uid = None
        if raw_school:
            uid = _parse_unit_id(raw_school)
            if uid is None:
                return _error("Invalid school ID", 400)
        rows = store().programs(cip_code=cip or None, unit_id=uid)
        cache = CACHE_PUBLIC if app.config["PRODUCTION"] else "no-store"
        return _cached({"data": rows}, cache)

    @app.post("/api/analytics")
    def api_analytics():
        """Accept a batch of client events; excluded IP is acknowledged but dropped."""
        try:
            body = request.get_json(force=True, silent=True)
            session_id, events = validate_batch(body)
            excluded = app.config.get("EXCLUDED_IP")
            if excluded and client_ip(request.headers) == excluded:
                return jsonify({"ok": True}), 200
            if app.state.analytics_limiter.is_limited(session_id):
                return _error("Rate limited", 429)
            stored = store().add_events(to_rows(session_id, events))
        except BatchError as exc:
            return _error(str(exc), 400)
        except Exception:
            log.exception("analytics insert failed")
            return _error("Internal error", 500)
        log.debug("stored %d events for session %s", stored, session_id)
        return jsonify({"ok": True}), 200

    @app.post("/api/newsletter")
    def api_newsletter():
        ip = client_ip(request.headers)
        if app.state.newsletter_limiter.is_limited(ip):
            return _error("Too many requests", 429)
        try:
            email, source = parse_signup(request.get_json(silent=True))
            inserted = store().add_signup(email, source)
        except SignupError as exc:
            return _error(str(exc), 400)
        except Exception:
            log.exception("newsletter signup failed")
            return _error("Internal error", 500)
        if not inserted:
            return jsonify({"ok": True, "message": "Already subscribed"}), 200
        log.info("newsletter signup from %s", source)
        return jsonify({"ok": True}), 200

    # --------------- errors ---------------

    @app.errorhandler(404)
    def not_found(_exc):
        if request.path.startswith("/api/"):
            return _error("Not found", 404)
        return render_template("not_found.html", title="Not Found"), 404

    @app.errorhandler(500)
    def server_error(_exc):
        if request.path.startswith("/api/"):
            return _error("Internal error", 500)
        return render_template("error.html", title="Something went wrong"), 500

    return app


def main(argv: list[str] | None = None) -> None:
    import argparse

    ap = argparse.ArgumentParser(description="Run the scorecard web app")
    ap.add_argument("--host", default="127.0.0.1")
    ap.add_argument("--port", type=int, default=5000)
    ap.add_argument("--debug", action="store_true")
    args = ap.parse_args(argv)

    settings.configure_logging()
    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()

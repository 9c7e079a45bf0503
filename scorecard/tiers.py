"""Display tiers: peer-group labels shown next to school names.

Named groups are matched on the exact Scorecard institution name; every
other school falls back to admission-rate bands.
"""

from __future__ import annotations

from typing import Optional

IVY_LEAGUE = frozenset({
    "Harvard University",
    "Yale University",
    "Princeton University",
    "Columbia University in the City of New York",
    "University of Pennsylvania",
    "Brown University",
    "Dartmouth College",
    "Cornell University",
})

IVY_PLUS = frozenset({
    "Stanford University",
    "Massachusetts Institute of Technology",
    "Duke University",
    "University of Chicago",
    "California Institute of Technology",
    "Johns Hopkins University",
    "Northwestern University",
    "Georgetown University",
    "University of Notre Dame",
    "Vanderbilt University",
    "Washington University in St Louis",
})

NESCAC = frozenset({
    "Williams College",
    "Amherst College",
    "Middlebury College",
    "Bowdoin College",
    "Wesleyan University",
    "Tufts University",
    "Bates College",
    "Colby College",
    "Hamilton College",
    "Connecticut College",
    "Trinity College",
})

PUBLIC_FLAGSHIP = frozenset({
    "University of Michigan-Ann Arbor",
    "University of California-Berkeley",
    "University of California-Los Angeles",
    "University of Virginia-Main Campus",
    "University of North Carolina at Chapel Hill",
    "Georgia Institute of Technology-Main Campus",
    "The University of Texas at Austin",
    "Ohio State University-Main Campus",
    "Pennsylvania State University-Main Campus",
    "University of Florida",
    "University of Wisconsin-Madison",
    "University of Washington-Seattle Campus",
    "Purdue University-Main Campus",
    "University of Maryland-College Park",
    "University of Minnesota-Twin Cities",
    "University of Illinois Urbana-Champaign",
    "Indiana University-Bloomington",
    "Rutgers University-New Brunswick",
    "University of Georgia",
    "University of Colorado Boulder",
    "University of Iowa",
    "University of Oregon",
    "University of Arizona",
    "University of Connecticut",
    "University of Massachusetts-Amherst",
    "The University of Alabama",
    "University of Kentucky",
    "University of Kansas",
    "Louisiana State University and Agricultural & Mechanical College",
    "University of South Carolina-Columbia",
    "The University of Tennessee-Knoxville",
    "University of Oklahoma-Norman Campus",
    "University of Utah",
    "University of Nebraska-Lincoln",
    "Texas A&M University-College Station",
    "North Carolina State University at Raleigh",
    "Virginia Polytechnic Institute and State University",
    "Michigan State University",
    "Clemson University",
    "University of Pittsburgh-Pittsburgh Campus",
})

# low admission rate but not an elite peer group
ELITE_EXCLUSIONS = {
    "Northeastern University": "Selective",
    "Minerva University": "General",
    "Stanbridge University": "General",
}

NAMED_GROUPS = [
    (IVY_LEAGUE, "Ivy League"),
    (IVY_PLUS, "Ivy Plus"),
    (NESCAC, "NESCAC"),
    (PUBLIC_FLAGSHIP, "Public Flagship"),
]

ELITE_MAX_ADMISSION = 0.15
ELITE_MIN_SIZE = 400
SELECTIVE_MAX_ADMISSION = 0.30

TIER_COLORS = {
    "Ivy League": "#16a34a",
    "Ivy Plus": "#2563eb",
    "NESCAC": "#7c3aed",
    "Public Flagship": "#ea580c",
    "Elite": "#0891b2",
    "Selective": "#db2777",
    "General": "#475569",
}

TIER_ORDER = [
    "Ivy League",
    "Ivy Plus",
    "NESCAC",
    "Public Flagship",
    "Elite",
    "Selective",
    "General",
]


def get_display_tier(
    school_name: str,
    db_tier: str = "",
    admission_rate: Optional[float] = None,
    size: Optional[int] = None,
) -> str:
    """Return the display tier for a school.

    ``db_tier`` is the stored selectivity tier; it is accepted for call-site
    symmetry but the display tier is derived from name, rate and size.
    """
    for group, label in NAMED_GROUPS:
        if school_name in group:
            return label

    exclusion = ELITE_EXCLUSIONS.get(school_name)
    if exclusion:
        return exclusion

    if admission_rate is not None:
        if admission_rate < ELITE_MAX_ADMISSION and size is not None and size >= ELITE_MIN_SIZE:
            return "Elite"
        if admission_rate < SELECTIVE_MAX_ADMISSION:
            return "Selective"
    return "General"


def tier_color(tier: str) -> str:
    return TIER_COLORS.get(tier, "#9ca3af")

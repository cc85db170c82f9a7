"""
Dashboard notes summarizing the synced bug notes.

The dashboards hold Dataview queries over the note frontmatter (Type,
program, state, bounty, severity, url, created_at). They are written once
and never overwritten, so the user is free to edit them.
"""

import logging
from datetime import date

logger = logging.getLogger(__name__)

ALL_TIME_FILENAME = "bugs-summary-all-time.md"
YEARLY_FILENAME = "bugs-summary-{year}.md"

ALL_TIME_TEMPLATE = """# Bugs
```dataview
TABLE program,state,bounty,severity,url,created_at
WHERE Type="bug-bounty-vuln"
SORT created_at DESC
```
# Total
```dataview
TABLE sum(rows.bounty) as TotalBounty
WHERE Type="bug-bounty-vuln"
WHERE bounty > 0
GROUP BY TotalBounty
```
# Best Programs
```dataview
TABLE sum(rows.bounty) as TotalBounty
WHERE Type="bug-bounty-vuln" and bounty > 0
GROUP BY program
SORT sum(rows.bounty) DESC
```
"""

YEARLY_TEMPLATE = """# Bugs {year}
```dataview
TABLE program,state,bounty,severity,url,created_at
WHERE Type="bug-bounty-vuln" and contains(dateformat(created_at,"yyyy"),"{year}")
SORT created_at DESC
```
# Total {year}
```dataview
TABLE sum(rows.bounty) as TotalBounty
WHERE Type="bug-bounty-vuln"
WHERE bounty > 0 and contains(dateformat(bounty_awarded_at,"yyyy"),"{year}")
GROUP BY TotalBounty
```
# Best Programs {year}
```dataview
TABLE sum(rows.bounty) as TotalBounty
WHERE Type="bug-bounty-vuln" and contains(dateformat(created_at,"yyyy"),"{year}") and bounty > 0
GROUP BY program
SORT sum(rows.bounty) DESC
```
"""


def dashboard_documents(directory, year=None) -> dict:
    """Returns {vault path: content} for the all-time and yearly dashboards."""
    year = year or date.today().year
    return {
        f"{directory}/{ALL_TIME_FILENAME}": ALL_TIME_TEMPLATE,
        f"{directory}/{YEARLY_FILENAME.format(year=year)}": YEARLY_TEMPLATE.format(year=year),
    }


def ensure_dashboards(store, directory, year=None) -> list:
    """Writes each dashboard that doesn't exist yet. Returns the paths written."""
    written = []
    for path, content in dashboard_documents(directory, year).items():
        if store.exists(path):
            logger.debug(f"Dashboard {path} already exists, leaving it alone.")
            continue
        store.write_file(path, content)
        logger.info(f"Created dashboard {path}")
        written.append(path)
    return written

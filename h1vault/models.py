"""
Report and earning types built from HackerOne JSON:API resources.

Relationship graphs are walked one hop at a time with related()/follow();
a missing hop returns None instead of raising, so partially populated
resources simply don't match or fall back to a default.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Optional

logger = logging.getLogger(__name__)

EARNING_BOUNTY_EARNED = 'earning-bounty-earned'
EARNING_RETEST_COMPLETED = 'earning-retest-completed'

# Relationship chains from an earning to the report it pays for
BOUNTY_REPORT_CHAIN = ('bounty', 'report')
RETEST_REPORT_CHAIN = ('report_retest_user', 'report_retest', 'report')


# --- Relationship accessors ---
def related(resource, name) -> Optional[dict]:
    """Returns resource['relationships'][name]['data'], or None if any hop is missing."""
    if not isinstance(resource, dict):
        return None
    relationships = resource.get('relationships')
    if not isinstance(relationships, dict):
        return None
    link = relationships.get(name)
    if not isinstance(link, dict):
        return None
    data = link.get('data')
    return data if isinstance(data, dict) else None


def follow(resource, *names) -> Optional[dict]:
    """Follows a chain of relationships, e.g. follow(earning, 'bounty', 'report')."""
    for name in names:
        resource = related(resource, name)
        if resource is None:
            return None
    return resource


def attribute(resource, key):
    """Returns resource['attributes'][key], or None."""
    if not isinstance(resource, dict):
        return None
    attributes = resource.get('attributes')
    if not isinstance(attributes, dict):
        return None
    return attributes.get(key)


def resource_id(resource) -> Optional[str]:
    if not isinstance(resource, dict) or resource.get('id') is None:
        return None
    return str(resource['id'])


def parse_amount(value) -> Optional[int]:
    """
    Parses a monetary amount ("500.00", 250, None) into whole units.

    Fractions are truncated. Unparseable or negative amounts yield None.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = int(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError, OverflowError):
        logger.warning(f"Ignoring unparseable amount: {value!r}")
        return None
    if amount < 0:
        logger.warning(f"Ignoring negative amount: {value!r}")
        return None
    return amount


@dataclass
class Report:
    id: str
    title: str = ''
    vulnerability_information: str = ''
    severity: Optional[str] = None
    program: Optional[str] = None
    created_at: Optional[str] = None
    # Every attribute of the payload, in payload order
    attributes: dict = field(default_factory=dict)

    @classmethod
    def from_api(cls, data: dict) -> "Report":
        attributes = data.get('attributes')
        if not isinstance(attributes, dict):
            attributes = {}
        return cls(
            id=resource_id(data) or '',
            title=attributes.get('title') or '',
            vulnerability_information=attributes.get('vulnerability_information') or '',
            severity=attribute(related(data, 'severity'), 'rating'),
            program=attribute(related(data, 'program'), 'handle'),
            created_at=attributes.get('created_at'),
            attributes=dict(attributes),
        )


@dataclass
class Earning:
    id: Optional[str]
    kind: str
    report_id: Optional[str] = None
    amount: Optional[int] = None
    bonus_amount: Optional[int] = None

    @classmethod
    def from_api(cls, data: dict) -> "Earning":
        kind = data.get('type') or ''
        report = None
        if kind == EARNING_BOUNTY_EARNED:
            report = follow(data, *BOUNTY_REPORT_CHAIN)
        elif kind == EARNING_RETEST_COMPLETED:
            report = follow(data, *RETEST_REPORT_CHAIN)
        return cls(
            id=resource_id(data),
            kind=kind,
            report_id=resource_id(report),
            amount=parse_amount(attribute(data, 'amount')),
            bonus_amount=parse_amount(attribute(data, 'bonus_amount')),
        )

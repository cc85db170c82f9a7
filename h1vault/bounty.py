import logging

from .models import EARNING_BOUNTY_EARNED, EARNING_RETEST_COMPLETED

logger = logging.getLogger(__name__)

RETEST_CREDIT = 50


def resolve_bounty(report_id, earnings) -> int:
    """
    Total credit earned for one report.

    Bounty earnings add their amount plus any bonus, completed retests add a
    flat RETEST_CREDIT. Earnings of other kinds, or whose relationship chain
    didn't lead to a report, are skipped.
    """
    total = 0
    for earning in earnings:
        if earning.kind == EARNING_BOUNTY_EARNED:
            if earning.report_id is not None and earning.report_id == report_id:
                total += earning.amount or 0
                if earning.bonus_amount is not None:
                    total += earning.bonus_amount
        elif earning.kind == EARNING_RETEST_COMPLETED:
            if earning.report_id is not None and earning.report_id == report_id:
                total += RETEST_CREDIT
        else:
            logger.debug(f"Skipping earning {earning.id} of unhandled type '{earning.kind}'")
    return total

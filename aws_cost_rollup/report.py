"""
Report assembly
"""

from .models import Report


def build_report(
    accounts,
    unified_view,
    global_summary,
    account_summaries,
    date_range,
    granularity,
    tag_filter=None,
):
    """Assemble the immutable Report handed to every renderer"""
    return Report(
        accounts=tuple(accounts),
        unified_view=unified_view,
        global_summary=global_summary,
        account_summaries=tuple(account_summaries),
        generated_range=date_range,
        granularity=granularity,
        tag_filter=tag_filter,
    )

"""
Dashboard Service

Campaign dashboard content with a two-stage approval workflow:
- Draft editing of campaign info, summary, social links and owners
- Submit for review with one pending submission per campaign
- Admin approve/reject with an append-only history
- Promotion of approved drafts to the live campaign records
- Slack and email notification of new submissions

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "dashboard_service"

"""
Reminders Module

Scheduled follow-up reminders for records awaiting action:
1. Selector - records due today (not suppressed, date reached, still open)
2. Dispatcher - one email per owner to the operations mailbox, with retry
3. Advancer - moves the notified records' reminder date forward 7 days

Triggers:
- APScheduler cron job (reminders_send_batch), five times a day
- GET /reminders/run with the batch secret
"""

from .jobs import register_reminder_jobs
from .router import router

__all__ = ["router", "register_reminder_jobs"]

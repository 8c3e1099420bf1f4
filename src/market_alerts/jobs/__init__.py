"""Scheduled jobs run outside the HTTP app (cron, CI schedulers)."""

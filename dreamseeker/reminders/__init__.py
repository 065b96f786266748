"""Reminder service module (sweep, dispatcher, Celery worker, HTTP API).

The sweep is the durable backstop for device-local reminders: it runs on a
fixed Celery beat interval, marks due reminders as sent exactly once and
enqueues one aggregated push per user.
"""

from prometheus_client import Counter


sweep_runs_total = Counter(
    "reminder_sweep_runs_total",
    "Total reminder sweep cycles",
)

reminders_marked_sent_total = Counter(
    "reminders_marked_sent_total",
    "Total reminders marked as sent by the sweep",
)

pushes_enqueued_total = Counter(
    "reminder_pushes_enqueued_total",
    "Total aggregated reminder pushes handed to the dispatcher",
)

reminders_dispatch_success_total = Counter(
    "reminders_dispatch_success_total",
    "Total successful push dispatches",
)

reminders_dispatch_failed_total = Counter(
    "reminders_dispatch_failed_total",
    "Total failed push dispatches",
)

local_notification_failures_total = Counter(
    "local_notification_failures_total",
    "Device-local reminder notifications that could not be scheduled or cancelled",
    ["operation"],
)

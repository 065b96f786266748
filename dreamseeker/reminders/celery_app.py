from celery import Celery
from kombu import Exchange, Queue
from .config import settings


celery_app = Celery(
    "reminders",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND or None,
)

exchange = Exchange(settings.EXCHANGE, type="direct", durable=True)

celery_app.conf.update(
    task_acks_late=True,
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    worker_prefetch_multiplier=1,
    worker_concurrency=settings.WORKER_CONCURRENCY,
    task_default_queue=settings.SWEEP_QUEUE,
    task_default_exchange=settings.EXCHANGE,
    task_default_routing_key=settings.SWEEP_ROUTING_KEY,
    include=["dreamseeker.reminders.tasks"],
    task_queues=(
        Queue(settings.SWEEP_QUEUE, exchange=exchange, routing_key=settings.SWEEP_ROUTING_KEY, durable=True),
        Queue(settings.DISPATCH_QUEUE, exchange=exchange, routing_key=settings.DISPATCH_ROUTING_KEY, durable=True),
    ),
)

# Celery Beat schedule for the periodic reminder sweep
celery_app.conf.beat_schedule = {
    "check-reminders": {
        "task": "reminders.check_reminders",
        "schedule": settings.SWEEP_INTERVAL_SECONDS,
    },
}

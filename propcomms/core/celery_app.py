import ssl

from celery import Celery
from celery.signals import setup_logging as worker_setup_logging

import propcomms.db.base  # noqa: F401  register all models so relationships resolve
from propcomms.core.config import settings
from propcomms.core.log_config import setup_logging

_uses_tls = settings.REDIS_URL.startswith("rediss://")

celery_app = Celery(
    "propcomms",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    task_track_started=True,
    result_expires=3600,
    # Fan-out is single-attempt per channel; never redeliver a half-run dispatch
    task_acks_late=False,
)

if _uses_tls:
    celery_app.conf.update(
        broker_use_ssl={"ssl_cert_reqs": ssl.CERT_NONE},
        redis_backend_use_ssl={"ssl_cert_reqs": ssl.CERT_NONE},
    )

celery_app.autodiscover_tasks(["propcomms.notifications"])


@worker_setup_logging.connect
def configure_worker_logging(**kwargs: object) -> None:
    setup_logging()

"""
Celery configuration for the Rally backend.

Only configures Celery if CELERY_BROKER_URL is set in the environment.
On deployments without a broker, periodic housekeeping is skipped.
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Only initialise Celery if a broker is configured
_broker = os.environ.get('CELERY_BROKER_URL', '')
if _broker:
    from celery import Celery
    from celery.schedules import crontab

    app = Celery('rally')
    app.config_from_object('django.conf:settings', namespace='CELERY')
    app.autodiscover_tasks()

    # Periodic tasks
    app.conf.beat_schedule = {
        'close-expired-polls': {
            'task': 'apps.polls.tasks.close_expired_polls',
            'schedule': crontab(minute='*/5'),
        },
    }
else:
    app = None

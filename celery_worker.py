# celery_worker.py
from app import create_app
from celery_config import create_celery_app

# Create the Flask app instance. This is still needed to provide context for tasks when they run.
flask_app = create_app()

# Create Celery instance with shared configuration
celery = create_celery_app(
    __name__,
    broker_url=flask_app.config.get('CELERY_BROKER_URL'),
    result_backend_url=flask_app.config.get('CELERY_RESULT_BACKEND'),
)


# Set the custom Task class to ensure tasks run within the Flask app context.
class ContextTask(celery.Task):
    def __call__(self, *args, **kwargs):
        with flask_app.app_context():
            return self.run(*args, **kwargs)


celery.Task = ContextTask

# --- Celery Beat Schedule ---
celery.conf.beat_schedule = {
    'deliver-alert-notifications': {
        'task': 'tasks.alert_tasks.deliver_pending_notifications',
        # Drains queued alert emails and SMS
        'schedule': flask_app.config.get('ALERT_DELIVERY_INTERVAL_SECONDS', 30.0),
        'kwargs': {'limit': flask_app.config.get('ALERT_DELIVERY_BATCH_SIZE', 100)}
    },
}
celery.conf.timezone = 'UTC'

# Import tasks to ensure they're registered with Celery
# This must be done after the Flask app is created
import tasks.alert_tasks  # noqa: E402,F401

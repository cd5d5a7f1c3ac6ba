# commands.py

import json

import click
from flask import current_app
from flask.cli import with_appcontext


@click.command('process-call-event')
@click.argument('payload_file', type=click.File('r'))
@with_appcontext
def process_call_event(payload_file):
    """Run a call event JSON file through the alert pipeline"""
    try:
        data = json.load(payload_file)
    except json.JSONDecodeError as e:
        raise click.ClickException(f'Invalid JSON: {e}')

    events = data if isinstance(data, list) else [data]
    alert_service = current_app.services.get('emergency_alert')
    result = alert_service.process_call_events(events)

    outcome = result.data.to_dict() if result.data is not None else {'status': result.error_code}
    click.echo(json.dumps(outcome, indent=2))
    if result.is_failure:
        raise click.ClickException(result.error)


@click.command('pending-alerts')
@click.option('--property-id', required=True, type=int, help='Property to list alerts for')
@click.option('--all', 'include_acknowledged', is_flag=True, help='Include acknowledged alerts')
@click.option('--limit', default=20, show_default=True, help='Maximum alerts to show')
@with_appcontext
def pending_alerts(property_id, include_acknowledged, limit):
    """List unacknowledged emergency alerts for a property"""
    alert_service = current_app.services.get('emergency_alert')
    alerts = alert_service.list_alerts(property_id, pending_only=not include_acknowledged, limit=limit)
    if not alerts:
        click.echo('No alerts found.')
        return

    for alert in alerts:
        status = f'acknowledged by {alert.acknowledged_by}' if alert.acknowledged else 'PENDING'
        click.echo(f'#{alert.id} {alert.event_time:%Y-%m-%d %H:%M:%S} ext {alert.extension} '
                   f'room {alert.room_number or "-"} {alert.guest_name or ""} [{status}]')


@click.command('deliver-notifications')
@click.option('--limit', default=100, show_default=True, help='Maximum deliveries per channel')
@with_appcontext
def deliver_notifications(limit):
    """Send queued alert emails and SMS now"""
    delivery_service = current_app.services.get('notification_delivery')
    stats = delivery_service.deliver_pending(limit=limit)
    click.echo(f"Sent: {stats.sent}, retrying: {stats.retrying}, failed: {stats.failed}")


def init_app(app):
    """Register commands with the Flask app"""
    app.cli.add_command(process_call_event)
    app.cli.add_command(pending_alerts)
    app.cli.add_command(deliver_notifications)

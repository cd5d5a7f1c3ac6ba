import hmac
import base64
from functools import wraps
from flask import Blueprint, jsonify, request, current_app, abort

from logging_config import get_logger

logger = get_logger(__name__)

alert_bp = Blueprint('alerts', __name__)

SIGNATURE_HEADER = 'X-PBX-Signature'


def verify_pbx_signature(f):
    """Decorator to verify the PBX webhook signature over the raw request body."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        signing_key = current_app.config.get('PBX_WEBHOOK_SIGNING_KEY')
        if not signing_key:
            logger.error("Webhook signing key is not configured")
            abort(500)

        received_signature = request.headers.get(SIGNATURE_HEADER)
        if not received_signature:
            logger.warning("No signature header on call event webhook")
            abort(403)

        try:
            signing_key_bytes = base64.b64decode(signing_key)
        except (ValueError, TypeError) as e:
            logger.error("Failed to decode signing key", error=str(e))
            abort(500)

        hmac_object = hmac.new(signing_key_bytes, request.get_data(), 'sha256')
        expected_signature_b64 = base64.b64encode(hmac_object.digest()).decode()

        if not hmac.compare_digest(expected_signature_b64, received_signature.strip()):
            logger.warning("Call event signature verification failed",
                           payload_length=len(request.get_data()))
            abort(403)

        return f(*args, **kwargs)
    return decorated_function


def _call_events_from_body(data):
    """A webhook body is one event object, a list of them, or {"events": [...]}"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        if isinstance(data.get('events'), list):
            return data['events']
        return [data]
    return None


@alert_bp.route('/call-events', methods=['POST'])
@verify_pbx_signature
def receive_call_events():
    data = request.get_json(silent=True)
    events = _call_events_from_body(data)
    if events is None:
        return jsonify({'status': 'error', 'message': 'Body must be a JSON object or list'}), 400

    if request.args.get('async') in ('1', 'true'):
        if not events:
            return jsonify({'status': 'NO_EVENT'}), 200
        from tasks.alert_tasks import process_call_event_task
        task = process_call_event_task.delay(events[0])
        logger.info("Call event queued for background processing", task_id=task.id)
        return jsonify({'status': 'queued', 'task_id': task.id}), 202

    alert_service = current_app.services.get('emergency_alert')
    result = alert_service.process_call_events(events)

    body = result.data.to_dict() if result.data is not None else {'status': result.error_code}
    if result.is_failure:
        body['error'] = result.error
        return jsonify(body), 422
    return jsonify(body), 200


@alert_bp.route('', methods=['GET'])
def list_alerts():
    property_id = request.args.get('property_id', type=int)
    if property_id is None:
        return jsonify({'error': 'property_id is required'}), 400

    pending_only = request.args.get('pending') in ('1', 'true')
    limit = min(request.args.get('limit', 50, type=int), 200)

    alert_service = current_app.services.get('emergency_alert')
    alerts = alert_service.list_alerts(property_id, pending_only=pending_only, limit=limit)
    return jsonify({'alerts': [alert.to_dict() for alert in alerts]})


@alert_bp.route('/<int:alert_id>/acknowledge', methods=['POST'])
def acknowledge_alert(alert_id):
    data = request.get_json(silent=True) or {}
    actor = (data.get('actor') or '').strip()

    alert_service = current_app.services.get('emergency_alert')
    result = alert_service.acknowledge_alert(alert_id, actor)
    if result.is_failure:
        status = 404 if result.error_code == 'ALERT_NOT_FOUND' else 400
        return jsonify({'error': result.error}), status
    return jsonify(result.data.to_dict())

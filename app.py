# app.py

from flask import Flask, g, request, jsonify
from flask_migrate import Migrate
from config import get_config
from extensions import db, mail
import importlib
import uuid
from werkzeug.middleware.proxy_fix import ProxyFix
from logging_config import setup_logging, get_logger

# Configure logging as early as possible
setup_logging(app_name="emergency-alerts", log_level="INFO")
logger = get_logger(__name__)


def create_app(config_name=None, test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize app with config
    config_class.init_app(app)

    if test_config:
        app.config.update(test_config)

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    db.init_app(app)
    Migrate(app, db)
    mail.init_app(app)

    app.services = _build_registry(app.config)

    # Add request tracking middleware
    @app.before_request
    def before_request():
        g.request_id = str(uuid.uuid4())
        logger.info("Request started",
                    request_id=g.request_id,
                    method=request.method,
                    path=request.path)

    @app.after_request
    def after_request(response):
        logger.info("Request completed",
                    request_id=getattr(g, 'request_id', None),
                    status_code=response.status_code)
        return response

    # Global error handlers
    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Internal server error",
                     request_id=getattr(g, 'request_id', None),
                     error=str(error))
        return jsonify({'error': 'Internal server error'}), 500

    @app.errorhandler(404)
    def not_found_error(error):
        logger.warning("Page not found",
                       request_id=getattr(g, 'request_id', None),
                       path=request.path)
        return jsonify({'error': 'Not found'}), 404

    @app.route('/health')
    def health_check():
        """Health check endpoint for monitoring"""
        from sqlalchemy import text
        health_status = {
            'status': 'healthy',
            'service': 'emergency-alerts'
        }

        try:
            db.session.execute(text('SELECT 1'))
            health_status['database'] = 'connected'
        except Exception as e:
            health_status['database'] = 'error'
            health_status['status'] = 'degraded'
            logger.error("Health check database error", error=str(e))

        return jsonify(health_status), 200 if health_status['status'] == 'healthy' else 503

    from routes.alert_routes import alert_bp
    app.register_blueprint(alert_bp, url_prefix='/api/alerts')

    # Register CLI commands
    from scripts import commands
    commands.init_app(app)

    return app


def _build_registry(config):
    """Register every repository and service factory; nothing is built until first use"""
    from services.service_registry import ServiceRegistry
    registry = ServiceRegistry()

    # db.session is a scoped session proxy, safe to share across requests
    registry.register('db_session', service=db.session)

    # Repositories
    for name, factory in _REPOSITORY_FACTORIES.items():
        registry.register_singleton(name, factory, dependencies=['db_session'])

    # Leaf services
    registry.register_singleton('audit_log', lambda: _create_audit_log_service(config))
    registry.register_singleton('company_directory', lambda: _create_company_directory_service(config))
    registry.register_singleton('email', lambda: _create_email_service(config))
    registry.register_singleton('sms_gateway', lambda: _create_sms_gateway_service(config))

    # Pipeline stages
    registry.register_singleton(
        'property_resolver',
        lambda property_repository, partner_attribute_repository, extension_mapping_repository,
               company_directory, audit_log: _create_property_resolver_service(
                   config, property_repository, partner_attribute_repository,
                   extension_mapping_repository, company_directory, audit_log),
        dependencies=['property_repository', 'partner_attribute_repository',
                      'extension_mapping_repository', 'company_directory', 'audit_log']
    )
    registry.register_singleton(
        'exemption',
        _create_exemption_service,
        dependencies=['property_parameter_repository', 'audit_log']
    )
    registry.register_singleton(
        'time_normalizer',
        _create_time_normalizer_service,
        dependencies=['time_zone_repository', 'property_parameter_repository', 'audit_log']
    )
    registry.register_singleton(
        'alert_dedup',
        lambda alert_record_repository, audit_log: _create_alert_dedup_service(
            config, alert_record_repository, audit_log),
        dependencies=['alert_record_repository', 'audit_log']
    )
    registry.register_singleton(
        'context_enricher',
        _create_context_enricher_service,
        dependencies=['extension_repository', 'occupancy_repository']
    )
    registry.register_singleton(
        'notification_dispatcher',
        lambda alert_record_repository, alert_channel_repository, notification_delivery_repository,
               event_queue_repository, audit_log: _create_notification_dispatcher_service(
                   config, alert_record_repository, alert_channel_repository,
                   notification_delivery_repository, event_queue_repository, audit_log),
        dependencies=['alert_record_repository', 'alert_channel_repository',
                      'notification_delivery_repository', 'event_queue_repository', 'audit_log']
    )
    registry.register_singleton(
        'emergency_alert',
        _create_emergency_alert_service,
        dependencies=['property_resolver', 'exemption', 'time_normalizer', 'alert_dedup',
                      'context_enricher', 'notification_dispatcher', 'alert_record_repository', 'audit_log']
    )
    registry.register_singleton(
        'notification_delivery',
        lambda notification_delivery_repository, email, sms_gateway: _create_notification_delivery_service(
            config, notification_delivery_repository, email, sms_gateway),
        dependencies=['notification_delivery_repository', 'email', 'sms_gateway']
    )

    errors = registry.validate_dependencies()
    if errors:
        for error in errors:
            logger.error("Service registry validation error", error=error)
        raise RuntimeError(f"Service registry misconfigured: {errors}")

    if config.get('FLASK_ENV') == 'production':
        registry.warmup(['emergency_alert'])

    return registry


# Service Factory Functions
# These are only called when the service is first requested

def _repository(module_name, class_name):
    def factory(db_session):
        module = importlib.import_module(f'repositories.{module_name}')
        return getattr(module, class_name)(db_session)
    return factory


_REPOSITORY_FACTORIES = {
    'property_repository': _repository('property_repository', 'PropertyRepository'),
    'partner_attribute_repository': _repository('partner_attribute_repository', 'PartnerAttributeRepository'),
    'extension_mapping_repository': _repository('extension_mapping_repository', 'ExtensionMappingRepository'),
    'property_parameter_repository': _repository('property_parameter_repository', 'PropertyParameterRepository'),
    'time_zone_repository': _repository('time_zone_repository', 'PropertyTimeZoneRepository'),
    'extension_repository': _repository('extension_repository', 'ExtensionRepository'),
    'occupancy_repository': _repository('occupancy_repository', 'OccupancyRepository'),
    'alert_channel_repository': _repository('alert_channel_repository', 'AlertChannelRepository'),
    'alert_record_repository': _repository('alert_record_repository', 'AlertRecordRepository'),
    'notification_delivery_repository': _repository('notification_delivery_repository', 'NotificationDeliveryRepository'),
    'event_queue_repository': _repository('event_queue_repository', 'EventQueueRepository'),
}


def _create_audit_log_service(config):
    from services.audit_log_service import AuditLogService
    return AuditLogService(config['ALERT_LOG_DIR'], date_format=config['ALERT_LOG_DATE_FORMAT'])


def _create_company_directory_service(config):
    """Create CompanyDirectoryService - None when no directory is configured"""
    from services.company_directory_service import CompanyDirectoryService
    if not config.get('COMPANY_DIRECTORY_URL'):
        logger.info("Company directory not configured; direct-integration lookups disabled")
        return None
    return CompanyDirectoryService(config['COMPANY_DIRECTORY_URL'], api_key=config.get('COMPANY_DIRECTORY_API_KEY'))


def _create_email_service(config):
    from services.email_service import EmailService, EmailConfig
    logger.info("Initializing EmailService")
    return EmailService(mail_client=mail, config=EmailConfig.from_app_config(config))


def _create_sms_gateway_service(config):
    from services.sms_gateway_service import SmsGatewayService
    return SmsGatewayService(config.get('SMS_GATEWAY_URL'),
                             api_key=config.get('SMS_GATEWAY_API_KEY'),
                             sender_id=config.get('SMS_SENDER_ID'))


def _create_property_resolver_service(config, property_repository, partner_attribute_repository,
                                      extension_mapping_repository, company_directory, audit_log):
    from services.property_resolver_service import PropertyResolverService, ResolverSettings
    settings = ResolverSettings(
        partner_gateway_group=config['ALERT_PARTNER_GATEWAY_GROUP'],
        secondary_gateway_group=config['ALERT_SECONDARY_GATEWAY_GROUP'],
        partner_name=config['ALERT_PARTNER_NAME'],
        direct_integration_groups=tuple(config['ALERT_DIRECT_INTEGRATION_GROUPS']),
    )
    return PropertyResolverService(property_repository, partner_attribute_repository, extension_mapping_repository,
                                   company_directory=company_directory, settings=settings, audit_log=audit_log)


def _create_exemption_service(property_parameter_repository, audit_log):
    from services.exemption_service import ExemptionService
    return ExemptionService(property_parameter_repository, audit_log=audit_log)


def _create_time_normalizer_service(time_zone_repository, property_parameter_repository, audit_log):
    from services.time_zone_service import TimeNormalizerService
    return TimeNormalizerService(time_zone_repository, property_parameter_repository, audit_log=audit_log)


def _create_alert_dedup_service(config, alert_record_repository, audit_log):
    from services.alert_dedup_service import AlertDedupService, DedupSettings
    settings = DedupSettings(
        ip_dedup_pbx_types=tuple(config['ALERT_IP_DEDUP_PBX_TYPES']),
        key_dedup_bypass_enterprise=config['ALERT_KEY_DEDUP_BYPASS_ENTERPRISE'],
    )
    return AlertDedupService(alert_record_repository, settings=settings, audit_log=audit_log)


def _create_context_enricher_service(extension_repository, occupancy_repository):
    from services.context_enricher_service import ContextEnricherService
    return ContextEnricherService(extension_repository, occupancy_repository)


def _create_notification_dispatcher_service(config, alert_record_repository, alert_channel_repository,
                                            notification_delivery_repository, event_queue_repository, audit_log):
    from services.notification_dispatcher_service import NotificationDispatcherService
    return NotificationDispatcherService(alert_record_repository, alert_channel_repository,
                                         notification_delivery_repository, event_queue_repository,
                                         date_format=config['ALERT_LOG_DATE_FORMAT'], audit_log=audit_log)


def _create_emergency_alert_service(property_resolver, exemption, time_normalizer, alert_dedup,
                                    context_enricher, notification_dispatcher, alert_record_repository,
                                    audit_log):
    from services.emergency_alert_service import EmergencyAlertService
    logger.info("Initializing EmergencyAlertService")
    return EmergencyAlertService(property_resolver, exemption, time_normalizer, alert_dedup,
                                 context_enricher, notification_dispatcher, alert_record_repository,
                                 audit_log=audit_log)


def _create_notification_delivery_service(config, notification_delivery_repository, email, sms_gateway):
    from services.notification_delivery_service import NotificationDeliveryService
    return NotificationDeliveryService(
        notification_delivery_repository,
        email_service=email if email.is_configured() else None,
        sms_gateway=sms_gateway if sms_gateway.is_configured() else None,
        max_attempts=config['ALERT_DELIVERY_MAX_ATTEMPTS'],
    )

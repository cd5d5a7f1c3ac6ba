"""
Tests for the service registry with lazy loading
"""

import pytest
from unittest.mock import Mock

from services.service_registry import ServiceRegistry


class TestServiceRegistry:
    """Test suite for ServiceRegistry"""

    @pytest.fixture
    def registry(self):
        """Create a fresh registry instance"""
        return ServiceRegistry()

    def test_register_service_instance(self, registry):
        service_instance = Mock()
        registry.register('test_service', service=service_instance)

        assert registry.get('test_service') is service_instance

    def test_register_requires_service_or_factory(self, registry):
        with pytest.raises(ValueError):
            registry.register('empty')

    def test_singleton_factory_is_lazy(self, registry):
        factory = Mock(return_value="service_instance")
        registry.register_singleton('lazy_service', factory)

        # Factory not called until first get
        factory.assert_not_called()

        assert registry.get('lazy_service') == "service_instance"
        assert registry.get('lazy_service') == "service_instance"
        factory.assert_called_once()

    def test_dependencies_injected_as_keywords(self, registry):
        registry.register('db_session', service='session')
        factory = Mock(return_value='repository')
        registry.register_singleton('repository', factory, dependencies=['db_session'])

        registry.get('repository')

        factory.assert_called_once_with(db_session='session')

    def test_unregistered_service(self, registry):
        with pytest.raises(ValueError, match="not registered"):
            registry.get('missing')

    def test_circular_dependency(self, registry):
        registry.register_singleton('a', lambda b: 'a', dependencies=['b'])
        registry.register_singleton('b', lambda a: 'b', dependencies=['a'])

        with pytest.raises(RuntimeError, match="Circular dependency"):
            registry.get('a')
        with pytest.raises(RuntimeError, match="Circular dependency"):
            registry.get_initialization_order()

    def test_validate_dependencies(self, registry):
        registry.register_singleton('service', lambda missing: None, dependencies=['missing'])

        assert registry.validate_dependencies() == ["Service 'service' depends on unregistered service 'missing'"]

    def test_initialization_order(self, registry):
        registry.register_singleton('pipeline', lambda repository: 'p', dependencies=['repository'])
        registry.register_singleton('repository', lambda db_session: 'r', dependencies=['db_session'])
        registry.register('db_session', service='session')

        order = registry.get_initialization_order()

        assert order.index('db_session') < order.index('repository') < order.index('pipeline')

    def test_warmup(self, registry):
        eager = Mock(return_value='eager')
        lazy = Mock(return_value='lazy')
        registry.register_singleton('eager', eager)
        registry.register_singleton('lazy', lazy)

        registry.warmup(['eager'])

        eager.assert_called_once()
        lazy.assert_not_called()

    def test_registered_instance_replaces_factory(self, registry):
        factory = Mock(return_value='built')
        registry.register_singleton('service', factory)
        registry.register('service', service='stub')

        assert registry.get('service') == 'stub'
        factory.assert_not_called()


class TestApplicationRegistry:
    """The registry built by create_app"""

    def test_all_dependencies_registered(self, app):
        assert app.services.validate_dependencies() == []

    def test_pipeline_is_built_from_registry(self, app):
        service = app.services.get('emergency_alert')

        assert service.property_resolver is app.services.get('property_resolver')
        assert service.dispatcher is app.services.get('notification_dispatcher')
        assert service.audit_log is app.services.get('audit_log')

    def test_company_directory_absent_without_url(self, app):
        assert app.services.get('company_directory') is None

    def test_delivery_service_skips_unconfigured_channels(self, app):
        delivery = app.services.get('notification_delivery')

        assert delivery.email_service is None
        assert delivery.sms_gateway is None

"""
Service Registry with lazy loading
Factories are resolved on first use, with their declared dependencies injected
as keyword arguments
"""
from typing import Dict, Any, Callable, Optional, Set, List
import threading

from logging_config import get_logger

logger = get_logger(__name__)


class ServiceDescriptor:
    """Describes a service registration"""

    def __init__(
        self,
        name: str,
        factory: Optional[Callable] = None,
        instance: Optional[Any] = None,
        dependencies: Optional[List[str]] = None
    ):
        self.name = name
        self.factory = factory
        self.instance = instance
        self.dependencies = dependencies or []
        self.lock = threading.Lock()


class ServiceRegistry:
    """
    Service registry attached to the Flask app as ``app.services``.

    Every service is a lazily built singleton. Dependencies are resolved
    recursively, initialization is thread-safe and cycles are reported.
    """

    def __init__(self):
        self._descriptors: Dict[str, ServiceDescriptor] = {}
        self._thread_local = threading.local()
        self._lock = threading.Lock()

    def register(
        self,
        name: str,
        service: Any = None,
        factory: Callable = None,
        dependencies: Optional[List[str]] = None
    ) -> None:
        """
        Register a service instance or a factory.

        Args:
            name: Service identifier
            service: Pre-instantiated service
            factory: Factory function for lazy loading
            dependencies: Service names passed to the factory as keyword arguments
        """
        if service is None and factory is None:
            raise ValueError(f"Either service instance or factory must be provided for '{name}'")

        descriptor = ServiceDescriptor(
            name=name,
            factory=factory,
            instance=service,
            dependencies=dependencies
        )

        with self._lock:
            self._descriptors[name] = descriptor

    def register_singleton(self, name: str, factory: Callable, dependencies: Optional[List[str]] = None) -> None:
        self.register(name, factory=factory, dependencies=dependencies)

    def get(self, name: str) -> Any:
        """
        Get a service by name, instantiating it and its dependencies on demand.

        Raises:
            ValueError: If service is not registered
            RuntimeError: If circular dependency detected
        """
        if name not in self._descriptors:
            raise ValueError(f"Service '{name}' is not registered")

        descriptor = self._descriptors[name]
        stack = self._initialization_stack()
        if name in stack:
            cycle = " -> ".join(stack + [name])
            raise RuntimeError(f"Circular dependency detected: {cycle}")

        return self._get_singleton(descriptor)

    def _initialization_stack(self) -> List[str]:
        if not hasattr(self._thread_local, 'initialization_stack'):
            self._thread_local.initialization_stack = []
        return self._thread_local.initialization_stack

    def _get_singleton(self, descriptor: ServiceDescriptor) -> Any:
        if descriptor.instance is not None:
            return descriptor.instance

        with descriptor.lock:
            # Double-check pattern
            if descriptor.instance is None:
                descriptor.instance = self._create_instance(descriptor)
            return descriptor.instance

    def _create_instance(self, descriptor: ServiceDescriptor) -> Any:
        if descriptor.factory is None:
            raise ValueError(f"No factory registered for '{descriptor.name}'")

        stack = self._initialization_stack()
        stack.append(descriptor.name)
        try:
            deps = {dep: self.get(dep) for dep in descriptor.dependencies}
            instance = descriptor.factory(**deps)
            logger.debug("Created service instance", service=descriptor.name)
            return instance
        finally:
            stack.pop()

    def validate_dependencies(self) -> List[str]:
        """
        Check every declared dependency is registered.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        for name, descriptor in self._descriptors.items():
            for dep in descriptor.dependencies:
                if dep not in self._descriptors:
                    errors.append(f"Service '{name}' depends on unregistered service '{dep}'")
        return errors

    def get_initialization_order(self) -> List[str]:
        """
        Topological order of registered services, dependencies first.

        Raises:
            RuntimeError: If circular dependency exists
        """
        graph = {name: list(d.dependencies) for name, d in self._descriptors.items()}
        visited: Set[str] = set()
        order: List[str] = []

        def visit(node: str, path: List[str]):
            if node in path:
                cycle = " -> ".join(path + [node])
                raise RuntimeError(f"Circular dependency detected: {cycle}")
            if node in visited:
                return
            for dep in graph.get(node, []):
                visit(dep, path + [node])
            visited.add(node)
            order.append(node)

        for name in graph:
            visit(name, [])
        return order

    def warmup(self, services: List[str]) -> None:
        """Instantiate the named services up front, in dependency order"""
        for name in self.get_initialization_order():
            if name in services:
                logger.info("Warming up service", service=name)
                self.get(name)

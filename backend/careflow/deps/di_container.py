"""
Dependency injection container using dependency-injector.
Wires the process-wide notification broker into everything that publishes to
or reads from it.
"""

from dependency_injector import containers, providers

from careflow.controllers.health_controller import HealthController
from careflow.controllers.notification_controller import NotificationController
from careflow.services.health_service import HealthService
from careflow.services.notification_broker import notification_broker


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""
    
    config = providers.Configuration()
    
    # The broker every NotificationService publishes to
    notification_broker = providers.Object(notification_broker)
    
    # Services
    health_service = providers.Singleton(
        HealthService,
        broker=notification_broker,
    )
    
    # Controllers; request-scoped ones take `session=` at call time
    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )
    notification_controller = providers.Factory(
        NotificationController,
        broker=notification_broker,
    )


_container: Container = None


def get_container() -> Container:
    """Get the global dependency injection container."""
    global _container
    if _container is None:
        _container = Container()
    return _container

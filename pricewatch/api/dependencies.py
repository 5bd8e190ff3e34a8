"""
FastAPI dependencies for dependency injection
"""
from fastapi import Depends

from .exceptions import DataServiceNotInitialized


class AppState:
    """Singleton holding application state"""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.data_service = None
        return cls._instance

    def set_data_service(self, service):
        self.data_service = service

    def get_data_service(self):
        return self.data_service


def get_app_state() -> AppState:
    """Dependency returning the app state"""
    return AppState()


def get_data_service(app_state: AppState = Depends(get_app_state)):
    """Dependency returning the data service, 503 until startup finished"""
    service = app_state.get_data_service()
    if service is None:
        raise DataServiceNotInitialized()
    return service

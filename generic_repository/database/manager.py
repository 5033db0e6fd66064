from .driver import SQLDriver

class DatabaseManager:
    _instance = None

    def __init__(self, settings):
        # DB_ECHO is applied through the sqlalchemy.engine log level (LogConfig)
        self.sql = SQLDriver(settings.DATABASE_URL)

    @classmethod
    def get_instance(cls, settings=None):
        if cls._instance is None:
            if settings is None:
                from generic_repository.config import settings as app_settings
                settings = app_settings
            cls._instance = cls(settings)
        return cls._instance

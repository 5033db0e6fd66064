"""Options accepted by add_generic_repository."""

import importlib
from types import ModuleType
from typing import List, Tuple, Type, Union

from generic_repository.database.context import DataContext
from generic_repository.exceptions import ConfigurationError

ModuleRef = Union[ModuleType, str]


class RepositoryOptions:
    """Modules to scan, explicit bindings and the data context type to bind against."""

    def __init__(self):
        self.modules: List[ModuleType] = []
        self.bindings: List[Tuple[type, type]] = []
        self.data_context_type: Type[DataContext] = DataContext

    def register_services_from_module(self, module: ModuleRef) -> "RepositoryOptions":
        module = self._import(module)
        if module not in self.modules:
            self.modules.append(module)
        return self

    def register_services_from_modules(self, *modules: ModuleRef) -> "RepositoryOptions":
        for module in modules:
            self.register_services_from_module(module)
        return self

    def register_repository(self, interface: type, implementation: type) -> "RepositoryOptions":
        """Bind interface to implementation without scanning for it."""
        self.bindings.append((interface, implementation))
        return self

    def use_data_context(self, context_type: Type[DataContext]) -> "RepositoryOptions":
        if not (isinstance(context_type, type) and issubclass(context_type, DataContext)):
            raise ConfigurationError(f"{context_type!r} is not a DataContext type")
        self.data_context_type = context_type
        return self

    @staticmethod
    def _import(module: ModuleRef) -> ModuleType:
        if isinstance(module, ModuleType):
            return module
        try:
            return importlib.import_module(module)
        except ImportError as e:
            raise ConfigurationError(f"Cannot import repository module {module!r}: {e}") from e

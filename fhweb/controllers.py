"""
fhw-web Controller Registry

Controllers are plain functions in the project's controller directory.
They are discovered once at startup: every public function of every
module is registered under (module name, function name). Routes name a
controller by ``{file, function}`` and are resolved against this registry.

Functions can also be registered explicitly:

    registry = ControllerRegistry()

    @registry.controller("auth")
    async def login(frontmatter):
        ...
"""

import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from typing import Any, Callable

from fhweb.errors import FunctionNotFound

logger = logging.getLogger(__name__)

ControllerFn = Callable[[dict], Any]


class ControllerRegistry:
    """Mapping of (module name, function name) to controller functions."""

    def __init__(self) -> None:
        self._controllers: dict[tuple[str, str], ControllerFn] = {}

    def __len__(self) -> int:
        return len(self._controllers)

    def __contains__(self, key: tuple[str, str]) -> bool:
        return key in self._controllers

    def register(self, module_name: str, function_name: str, fn: ControllerFn) -> None:
        """Register a controller function."""
        self._controllers[(module_name, function_name)] = fn
        logger.debug(f"Registered controller: {module_name}.{function_name}")

    def controller(self, module_name: str, name: str | None = None) -> Callable[[ControllerFn], ControllerFn]:
        """Decorator to register a controller function."""
        def decorator(fn: ControllerFn) -> ControllerFn:
            self.register(module_name, name or fn.__name__, fn)
            return fn
        return decorator

    def resolve(self, module_name: str, function_name: str) -> ControllerFn:
        """Look up a controller.

        Raises:
            FunctionNotFound: If nothing callable is registered under that name
        """
        fn = self._controllers.get((module_name, function_name))
        if fn is None or not callable(fn):
            raise FunctionNotFound(
                f"Module {module_name} does not export a function named {function_name}. "
                "Please check the documentation."
            )
        return fn

    def discover(self, directory: Path) -> int:
        """Import every module in ``directory`` and register its functions.

        Returns the number of controllers registered.
        """
        if not directory.is_dir():
            logger.info(f"No controller directory at {directory}")
            return 0

        count = 0
        for path in sorted(directory.glob("*.py")):
            if path.name.startswith("_"):
                continue
            module_name = path.stem
            try:
                module = _import_file(path, f"fhweb_controllers.{module_name}")
            except Exception:
                logger.exception(f"Failed to import controller module: {path}")
                continue

            for function_name, fn in inspect.getmembers(module, inspect.isfunction):
                if function_name.startswith("_") or fn.__module__ != module.__name__:
                    continue
                self.register(module_name, function_name, fn)
                count += 1

        logger.info(f"Discovered {count} controller functions in {directory}")
        return count


def _import_file(path: Path, qualified_name: str):
    """Import a source file as a module under ``qualified_name``."""
    spec = importlib.util.spec_from_file_location(qualified_name, path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[qualified_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(qualified_name, None)
        raise
    return module

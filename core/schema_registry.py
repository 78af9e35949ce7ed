# core/schema_registry.py
from __future__ import annotations
from typing import Callable, List, Tuple
from sqlalchemy.engine import Engine
import importlib
import logging
import pkgutil
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

# Schema installer type
SchemaInstaller = Callable[[Engine], None]

# Registry: (name, installer_func)
_REGISTRY: List[Tuple[str, SchemaInstaller]] = []

def _add(name: str, fn: SchemaInstaller) -> None:
    # modules may be re-imported (Streamlit reruns, test reloads); keep one entry per name
    for i, (existing, _) in enumerate(_REGISTRY):
        if existing == name:
            _REGISTRY[i] = (name, fn)
            return
    _REGISTRY.append((name, fn))

def register(
    name: str | SchemaInstaller, installer: SchemaInstaller | None = None
) -> SchemaInstaller | Callable[[SchemaInstaller], SchemaInstaller]:
    """
    Registers a schema installer function.
    Can be used as a decorator (@register / @register("name")) or a function call (register("name", fn)).
    """
    # Used as @register("name")
    if isinstance(name, str) and installer is None:
        def decorator(fn: SchemaInstaller) -> SchemaInstaller:
            _add(name, fn)
            return fn
        return decorator

    # Used as @register
    elif callable(name) and installer is None:
        fn = name
        _add(f"{fn.__module__}.{fn.__name__}", fn)
        return fn

    # Used as register("name", fn)
    elif isinstance(name, str) and callable(installer):
        _add(name, installer)
        return installer

    raise TypeError("Invalid usage of @register")

def registered_names() -> List[str]:
    return [name for name, _ in _REGISTRY]

def run_all(engine: Engine) -> None:
    """
    Runs all registered schema installers in registration order.
    A failing installer aborts initialisation; later installers depend on earlier tables.
    """
    logger.info("SchemaRegistry: running %d installers", len(_REGISTRY))
    for name, installer_fn in _REGISTRY:
        logger.debug("Applying schema: %s", name)
        try:
            installer_fn(engine)
        except Exception:
            logger.error("Schema installer %s failed", name, exc_info=True)
            raise
    logger.info("SchemaRegistry: all installers complete")

def auto_discover(
    start_path: str | Path = "schemas",
    root_package: str | None = None
) -> None:
    """
    Imports every module in a directory to trigger its @register decorators.
    Modules are imported in name order, so ``_seed`` style prefixes control ordering.

    :param start_path: The directory path to start discovery (e.g., "schemas").
    :param root_package: The parent package name (optional).
    """
    start_path = Path(start_path)
    if not start_path.is_dir():
        logger.warning("Schema auto_discover: %s is not a directory, skipping", start_path)
        return

    if root_package:
        base_import_name = f"{root_package}.{start_path.name}"
    else:
        parent_dir = str(start_path.parent.resolve())
        if parent_dir not in sys.path:
            sys.path.insert(0, parent_dir)
        base_import_name = start_path.name

    modules = sorted(
        name for _, name, is_pkg in pkgutil.iter_modules([str(start_path)]) if not is_pkg
    )
    for module_name in modules:
        importlib.import_module(f"{base_import_name}.{module_name}")
        logger.debug("Discovered schema module %s.%s", base_import_name, module_name)

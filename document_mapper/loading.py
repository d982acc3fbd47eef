import importlib
import typing


def load_object(path: str) -> typing.Any:
    """Imports ``package.module.Name`` and returns ``Name``.

    ``Name`` may also be a module of its own defining a ``Name`` attribute, so
    ``models.Person`` resolves both ``models.py`` and ``models/Person.py`` layouts.
    """
    module_path, _, name = path.rpartition(".")
    if not module_path:
        raise ImportError(f"'{path}' is not a dotted path")

    try:
        module = importlib.import_module(path)
    except ModuleNotFoundError as exc:
        if exc.name != path:
            raise
        module = importlib.import_module(module_path)
    return getattr(module, name)

"""Turn a ``"package.module:name"`` target into the ``App`` it points at."""

import importlib

from sprout.app import App


def resolve_app(import_string: str) -> App:
    """Import *import_string* and return the app it names.

    The part after the colon defaults to ``app``. If it names a plain
    callable (``"sprout.garden.app:create_app"``) that callable is invoked
    with no arguments and must return the app.

    Raises:
        ModuleNotFoundError: The module part does not import.
        AttributeError: The module has no such name.
        TypeError: The target is neither an ``App`` nor a factory of one.
    """
    module_name, _, attr = import_string.partition(":")
    target = getattr(importlib.import_module(module_name), attr or "app")

    if not isinstance(target, App) and callable(target):
        try:
            target = target()
        except Exception as exc:
            msg = f"Calling factory {import_string!r} failed: {exc}"
            raise TypeError(msg) from exc

    if isinstance(target, App):
        return target
    msg = f"{import_string!r} is a {type(target).__name__}, not a sprout.App"
    raise TypeError(msg)

"""Local serving through pounce, the optional ``server`` extra."""

from sprout.errors import ConfigurationError


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = True,
    reload_include: tuple[str, ...] = (),
    reload_dirs: tuple[str, ...] = (),
    app_path: str | None = None,
) -> None:
    """Serve *app* on one pounce worker until interrupted.

    With *app_path* (``"module:attr"``) a reload re-imports the app instead
    of reusing the object passed in. *reload_include* and *reload_dirs*
    widen what the watcher looks at.
    """
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = "Serving needs the optional pounce server: pip install 'sprout[server]'"
        raise ConfigurationError(msg) from exc

    server_config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
        reload_include=reload_include,
        reload_dirs=reload_dirs,
    )
    Server(server_config, app, app_path=app_path).run()

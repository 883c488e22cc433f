"""Flask application factory for the dev server."""

from __future__ import annotations

import logging
import sys
from typing import Any, Sequence

from flask import Flask
from flask_cors import CORS

from autopicture_shared.hooks import order_plugins, plugin_applies
from autopicture_shared.options import ResolvedConfig

from .config import DevConfig
from .routes import pages_bp

logger = logging.getLogger(__name__)


def create_app(config: DevConfig | None = None, plugins: Sequence[Any] = ()) -> Flask:
    """Create the dev server and let plugins hook into it."""
    if config is None:
        config = DevConfig.load()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    active = order_plugins([p for p in plugins if plugin_applies(p, "serve")])

    # project files own every path, including /static
    app = Flask(__name__, static_folder=None)
    CORS(app)

    app.config["project_root"] = config.root_path()
    app.config["public_dir"] = config.public_path()
    app.config["plugins"] = active

    @app.get("/__autopicture/health")
    def health():
        return {"status": "ok"}

    app.register_blueprint(pages_bp)

    resolved = ResolvedConfig(
        command="serve",
        root=config.root_path(),
        out_dir=config.out_dir,
        public_dir=config.public_dir,
    )
    for plugin in active:
        hook = getattr(plugin, "config_resolved", None)
        if hook is not None:
            hook(resolved)
    for plugin in active:
        hook = getattr(plugin, "configure_server", None)
        if hook is not None:
            hook(app)

    logger.info("Dev server ready for %s (%d plugins)", config.root_path(), len(active))
    return app


def main() -> None:
    """Entry point for running the dev server without plugins."""
    config = DevConfig.load()
    app = create_app(config)
    app.run(host=config.host, port=config.port, debug=True, use_reloader=False)


if __name__ == "__main__":
    main()

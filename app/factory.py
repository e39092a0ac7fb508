from pathlib import Path
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.middleware.proxy_fix import ProxyFix

from config_manager import ConfigManager
from content_service.document_store import DocumentStore
from content_service.recommendations import build_default_engine

from app.content_feed.factory import create_content_feed_module
from app.event_tracking.factory import create_event_tracking_module

PROJECT_ROOT = Path(__file__).parent.parent


def _resolve_data_dir(data_dir: str) -> Path:
    path = Path(data_dir)
    return path if path.is_absolute() else PROJECT_ROOT / path


def create_app(config_manager: Optional[ConfigManager] = None, store: Optional[DocumentStore] = None) -> Flask:
    """Build the Flask application.

    Args:
        config_manager: Configuration source; a fresh ConfigManager by default
        store: Document store to serve from; built from the paths config by default
    """
    config_manager = config_manager or ConfigManager()
    reco_config = config_manager.get_recommendation_config()
    if store is None:
        store = DocumentStore(_resolve_data_dir(config_manager.get_paths_config().data_dir))

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(
        app.wsgi_app,
        x_proto=1,     # trust 1 hop for X-Forwarded-Proto
        x_host=1,      # trust 1 hop for X-Forwarded-Host
        x_prefix=1)    # <-- pay attention to X-Forwarded-Prefix

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    engine = build_default_engine(store, reco_config)

    content_feed_module = create_content_feed_module(
        engine,
        default_limit=reco_config.default_limit,
        max_limit=reco_config.max_limit,
    )
    event_tracking_module = create_event_tracking_module(store.users)

    app.register_blueprint(content_feed_module["blueprint"])
    app.register_blueprint(event_tracking_module["blueprint"])

    app.extensions["document_store"] = store
    app.extensions["recommendation_engine"] = engine

    # -------------------------------------------------------------------------
    # Routes
    # -------------------------------------------------------------------------

    @app.route("/test", methods=["GET"])
    def test_endpoint():
        """Test endpoint to verify routing is working."""
        return jsonify({
            "status": "ok",
            "message": "Test endpoint working",
            "path": request.path,
            "url": request.url,
        })

    return app


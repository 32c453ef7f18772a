import logging
from typing import Optional

from flask import Flask, Response, jsonify, request

from config import Settings, load_settings
from database import create_store
from handlers.api import ApiRequest, ApiResponse, build_services, dispatch
from services.session_auth import SESSION_COOKIE

logger = logging.getLogger(__name__)

API_PATHS = ("/api", "/.netlify/functions/api")


def setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, settings.log_level, logging.INFO),
    )


def _to_flask(api_response: ApiResponse) -> Response:
    resp = jsonify(api_response.body)
    resp.status_code = api_response.status
    cookie = api_response.set_cookie
    if cookie is not None:
        resp.set_cookie(
            cookie.name, cookie.value,
            max_age=cookie.max_age, secure=cookie.secure,
            httponly=True, samesite="Lax", path="/",
        )
    if api_response.clear_cookie:
        resp.delete_cookie(SESSION_COOKIE, path="/", httponly=True, samesite="Lax")
    return resp


def create_app(settings: Optional[Settings] = None, store=None) -> Flask:
    """Flask-приложение с одним эндпоинтом ?action=..."""
    settings = settings or load_settings()
    store = store if store is not None else create_store(settings)
    services = build_services(settings, store)

    app = Flask(__name__)
    app.config["SHIFT_SERVICES"] = services

    def api_endpoint():
        api_request = ApiRequest(
            method=request.method,
            action=request.args.get("action"),
            query=request.args.to_dict(),
            body=request.get_data(as_text=True),
            cookies=request.cookies,
        )
        return _to_flask(dispatch(services, api_request))

    for path in API_PATHS:
        app.add_url_rule(
            path, endpoint=f"api:{path}", view_func=api_endpoint,
            methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        )

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    return app


def main():
    """Точка входа"""
    settings = load_settings()
    setup_logging(settings)
    app = create_app(settings)
    logger.info(f"🚀 Сервис выходных запущен на {settings.host}:{settings.port}")
    app.run(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv
import logging
import os

from routes.content_api import init_content_api
from services.content import ContentService

load_dotenv()


def create_app(service: ContentService = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "change-me")

    CORS(app)

    # Register blueprints
    init_content_api(app, service or ContentService())
    return app


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    app = create_app()
    app.config["CONTENT_SERVICE"].start_background_prefetch()
    app.run(host="127.0.0.1", port=int(os.getenv("PORT", "5055")))

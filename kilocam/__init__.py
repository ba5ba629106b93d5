from flask import Flask
import logging
import os
from logging.handlers import RotatingFileHandler


def create_app():
    app = Flask(__name__)

    # Configure Logging
    if not os.path.exists("logs"):
        os.makedirs("logs")

    file_handler = RotatingFileHandler("logs/app.log", maxBytes=1048576, backupCount=10)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]")
    )
    file_handler.setLevel(logging.INFO)

    # app.logger is the "kilocam" logger, parent of every module logger
    if not any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers):
        app.logger.addHandler(file_handler)
    else:
        file_handler.close()
    app.logger.setLevel(logging.INFO)
    app.logger.info("KiloCam Panel Startup")

    # Register blueprints
    from kilocam.web.routes import web
    from kilocam.api.routes.device import device_bp
    from kilocam.api.routes.files import files_bp
    from kilocam.core.events import event_manager

    app.register_blueprint(web)
    app.register_blueprint(device_bp)
    app.register_blueprint(files_bp)

    event_manager.start_heartbeat()

    return app

#!/usr/bin/env python3
"""
Main entry point for the Rugby Scoring web application.

This script launches the Flask-based web server. When RUGBY_ADMIN_USERNAME and
RUGBY_ADMIN_PASSWORD are set and no admin account exists yet, a first admin
account is created before the server starts.
"""
import logging
import os

from rugby_scoring.config import AppConfig
from rugby_scoring.services import AdminService, JsonFileStore, ValidationError
from rugby_scoring.ui.web_app import run_web_app
from rugby_scoring.utils import configure_logging

logger = logging.getLogger("rugby_scoring.run_web")


def bootstrap_admin(config: AppConfig) -> None:
    username = os.getenv("RUGBY_ADMIN_USERNAME")
    password = os.getenv("RUGBY_ADMIN_PASSWORD")
    if not (username and password and config.data_file):
        return
    store = JsonFileStore(config.data_file)
    if store.select("admins"):
        return
    try:
        AdminService(store).create_admin({
            "username": username,
            "password": password,
            "full_name": os.getenv("RUGBY_ADMIN_NAME", "Administrator"),
        })
    except ValidationError as e:
        logger.error("Admin account not created: %s", e)


if __name__ == "__main__":
    config = AppConfig.from_env()
    configure_logging(logfile=config.log_file)
    bootstrap_admin(config)
    run_web_app(config)

# backend/wsgi.py
"""
WSGI entry point (FLASK_APP=wsgi.py, or `gunicorn wsgi:app`).

On startup: apply pending migrations when AUTO_APPLY_MIGRATIONS=1, then make
sure a bootstrap admin exists.
"""

from flask_migrate import upgrade

from paintdesk import create_app
from paintdesk.services.auth_service import ensure_bootstrap_admin

app = create_app()

with app.app_context():
    if app.config.get("AUTO_APPLY_MIGRATIONS"):
        app.logger.info("Applying database migrations")
        upgrade()
        ensure_bootstrap_admin()

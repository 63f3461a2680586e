# wsgi.py
# Expose as "app" for gunicorn's wsgi entrypoint: gunicorn wsgi:app
import os, logging

from app import app

logger = logging.getLogger(__name__)
logger.info(f"Startup: PORT={os.environ.get('PORT')} binding via gunicorn")

if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))

# extensions.py

from flask_sqlalchemy import SQLAlchemy
from flask_mail import Mail

# Single source of truth for the db object.
# It's initialized here, but not yet connected to a Flask app.
db = SQLAlchemy()

# Outbound mail for queued alert emails
mail = Mail()

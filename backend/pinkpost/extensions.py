# Overview: Flask extension instances for database, migrations, and outbound integrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.gateway import StripeGateway
from .services.mailer import ResendMailer

db = SQLAlchemy()
migrate = Migrate()
gateway = StripeGateway()
mailer = ResendMailer()

"""
Flask CLI commands:  flask create-admin, flask send-expiry-reminders
"""
import click
from flask import current_app

from truckconnect import db


def register_cli(app):

    @app.cli.command("create-admin")
    @click.option("--name", default="Admin", show_default=True)
    @click.option("--email", required=True)
    @click.option("--password", required=True)
    def cli_create_admin(name, email, password):
        """Create an admin account (admins cannot self-register)."""
        from truckconnect.models import User

        email = email.strip().lower()
        if User.query.filter_by(email=email).first():
            raise click.ClickException("User {} already exists".format(email))
        admin = User(name=name, email=email, role='admin')
        admin.set_password(password)
        db.session.add(admin)
        db.session.commit()
        click.echo("Created admin {} ({})".format(admin.email, admin.id))

    @app.cli.command("send-expiry-reminders")
    def cli_send_expiry_reminders():
        """Notify drivers whose documents expire soon."""
        from truckconnect.services.scheduler import send_document_expiry_reminders

        count = send_document_expiry_reminders(current_app._get_current_object())
        click.echo("Sent document expiry reminders to {} drivers".format(count))

"""
Flask CLI commands for provisioning identities:
    flask --app api init-db
    flask --app api create-user --id 1 --first-name Ada
"""
import click
from flask import current_app

from models.user import User


def register_commands(app):

    @app.cli.command("init-db")
    def init_db():
        """Create the database tables."""
        current_app.extensions["storage"].reload()
        click.echo("database initialised")

    @app.cli.command("create-user")
    @click.option("--id", "user_id", type=click.IntRange(min=1), required=True)
    @click.option("--first-name", default=None)
    @click.option("--last-name", default=None)
    def create_user(user_id, first_name, last_name):
        """Add an identity that may log in."""
        storage = current_app.extensions["storage"]
        if storage.get(User, user_id) is not None:
            raise click.ClickException(f"user {user_id} already exists")

        user = User(id=user_id, first_name=first_name, last_name=last_name)
        storage.new(user)
        storage.save()
        click.echo(f"created user {user_id}: {user.to_dict()}")

import click

from smcr_builder import create_app, db
from smcr_builder.models import User

app = create_app()


@app.cli.command("init-db")
def init_db():
    """Initialize the database and create the configured admin user."""
    db.create_all()
    username = app.config["ADMIN_USERNAME"]
    if not User.query.filter_by(username=username).first():
        admin = User(
            username=username,
            email=app.config["ADMIN_EMAIL"],
            role="admin",
            full_name="Administrator",
        )
        admin.set_password(app.config["ADMIN_PASSWORD"])
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Database initialized. Admin user created ({username})")
    else:
        click.echo("Database already initialized.")


if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5000)

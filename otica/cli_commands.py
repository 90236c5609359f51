"""
Flask CLI commands for store administration.

Commands:
- flask init-db: Create database tables
- flask create-user: Create a back-office user
- flask update-overdue: Flag unpaid accounts past their due date
"""

import click
import re
from otica.database import create_all, get_session
from otica.models import AppUser
from otica.services.financial_service import update_overdue_accounts, get_overdue_accounts
from otica.utils.formatters import money_br, date_br


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create all tables."""
        create_all()
        click.echo(click.style('✅ Tabelas criadas.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--name', prompt=True, help='Full name')
    def create_user(email, password, name):
        """Create a new back-office user."""
        db_session = get_session()
        email = email.strip().lower()

        # Validate email format
        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, email):
            click.echo(click.style('❌ Email inválido. Use o formato: usuario@exemplo.com', fg='red'))
            return

        if len(password) < 6:
            click.echo(click.style('❌ A senha deve ter pelo menos 6 caracteres.', fg='red'))
            return

        if db_session.query(AppUser).filter_by(email=email).first():
            click.echo(click.style(f'❌ Já existe um usuário com o email: {email}', fg='red'))
            return

        try:
            user = AppUser(email=email, full_name=name.strip())
            user.set_password(password)

            db_session.add(user)
            db_session.commit()

            click.echo(click.style('\n✅ Usuário criado com sucesso!', fg='green', bold=True))
            click.echo(f'   Email: {email}')
            click.echo(f'   ID: {user.id}')
        except Exception as e:
            db_session.rollback()
            click.echo(click.style(f'❌ Erro ao criar usuário: {str(e)}', fg='red'))

    @app.cli.command('update-overdue')
    def update_overdue():
        """Mark pending accounts past their due date as overdue."""
        db_session = get_session()
        count = update_overdue_accounts(db_session)
        click.echo(click.style(f'✅ {count} conta(s) marcada(s) como vencida(s).', fg='green'))

        for account in get_overdue_accounts(db_session):
            click.echo(
                f'   #{account.id} {date_br(account.due_date)} '
                f'{money_br(account.amount)} - {account.description}'
            )

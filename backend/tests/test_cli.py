"""Flask CLI commands."""

from datetime import timedelta

from pharmapos.extensions import db
from pharmapos.models import SessionToken, User
from pharmapos.services import session_service
from pharmapos.time_utils import utcnow


def test_system_init_is_idempotent(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0, result.output
    assert "PASS Created admin user admin@pharmapos.local" in result.output

    roles = {u.email: u.role for u in db.session.query(User).all()}
    assert roles == {"admin@pharmapos.local": "admin", "cashier@pharmapos.local": "employee"}

    again = runner.invoke(args=["system", "init"])
    assert again.exit_code == 0
    assert "SKIP User admin@pharmapos.local already exists" in again.output
    assert db.session.query(User).count() == 2


def test_users_create_and_list(app):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create",
        "--email", "Night@PharmaPOS.local",
        "--name", "Night Shift",
        "--password", "Password123!",
        "--role", "employee",
    ])
    assert result.exit_code == 0, result.output

    listing = runner.invoke(args=["users", "list"])
    assert "night@pharmapos.local" in listing.output


def test_users_create_rejects_weak_password(app):
    result = app.test_cli_runner().invoke(args=[
        "users", "create",
        "--email", "weak@pharmapos.local",
        "--name", "Weak",
        "--password", "short",
        "--role", "employee",
    ])
    assert result.exit_code != 0
    assert db.session.query(User).count() == 0


def test_deactivate_revokes_sessions(app, employee_user):
    session_service.create_session(employee_user.id)
    result = app.test_cli_runner().invoke(args=["users", "deactivate", "--email", employee_user.email])
    assert result.exit_code == 0, result.output
    assert "revoked 1 session(s)" in result.output
    assert db.session.get(User, employee_user.id).is_active is False


def test_cleanup_sessions(app, employee_user):
    session, _ = session_service.create_session(employee_user.id)
    session.created_at = utcnow() - timedelta(days=46)
    session.expires_at = utcnow() - timedelta(days=45)
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup-sessions"])
    assert result.exit_code == 0
    assert "Deleted 1 old session tokens." in result.output
    assert db.session.query(SessionToken).count() == 0

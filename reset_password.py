"""
Staff account utility for alquilo-backoffice
There is no sign-up endpoint; back-office users are created from here.

Usage:
    python reset_password.py                                   (list users)
    python reset_password.py <username> <new_password>         (reset password)
    python reset_password.py --create <username> <password> [email]

Example:
    python reset_password.py --create recepcion Recepcion2025 recepcion@alquiloscooter.com
    python reset_password.py recepcion NuevaClave2026
"""

import sys
import os

# Add app to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from app.database import SessionLocal, create_tables
from app.models.user import User
from app.utils.security import hash_password, validate_password_strength


def _check_password(password: str) -> bool:
    is_valid, error_msg = validate_password_strength(password)
    if not is_valid:
        print(f"❌ {error_msg}")
    return is_valid


def create_user(username: str, password: str, email: str = None) -> bool:
    if not _check_password(password):
        return False

    db = SessionLocal()
    try:
        if db.query(User).filter(User.username == username).first():
            print(f"❌ User '{username}' already exists")
            return False

        db.add(User(username=username, email=email, hashed_password=hash_password(password), is_active=True))
        db.commit()
        print(f"✅ User created: {username}")
        return True
    finally:
        db.close()


def reset_password(username: str, new_password: str) -> bool:
    if not _check_password(new_password):
        return False

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.username == username).first()
        if not user:
            print(f"❌ User '{username}' not found")
            list_users()
            return False

        user.hashed_password = hash_password(new_password)
        db.commit()
        print(f"✅ Password reset for user: {username}")
        return True
    finally:
        db.close()


def list_users():
    db = SessionLocal()
    try:
        users = db.query(User).order_by(User.username).all()
        print("\n📋 Users:")
        print("-" * 60)
        for u in users:
            status = "🟢 Active" if u.is_active else "🔴 Inactive"
            print(f"   {u.username:20} | {(u.email or '-'):30} | {status}")
        print("-" * 60)
    finally:
        db.close()


if __name__ == "__main__":
    create_tables()
    args = sys.argv[1:]

    if not args:
        list_users()
        print("\n💡 python reset_password.py --create <username> <password> [email]")
    elif args[0] == "--create" and len(args) in (3, 4):
        ok = create_user(args[1], args[2], args[3] if len(args) == 4 else None)
        sys.exit(0 if ok else 1)
    elif len(args) == 2:
        sys.exit(0 if reset_password(args[0], args[1]) else 1)
    else:
        print(__doc__)
        sys.exit(1)

"""
🛠️ SITE MANAGEMENT HELPER
Quick script to seed content and manage users in the database.

Usage:
    python manage.py --seed
    python manage.py --list-users
    python manage.py --grant-admin "me@example.com"
    python manage.py --revoke-admin "me@example.com"
"""

import os
import sys

# Add the app directory to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from sqlalchemy import func

from app.database import SessionLocal, init_db
from app.models.blog import BlogPost
from app.models.portfolio import PortfolioProject
from app.models.user import User

SAMPLE_PROJECTS = [
    {
        "title": "MEL System for NGO",
        "slug": "mel-system-ngo",
        "description": "A comprehensive Monitoring, Evaluation, and Learning system.",
        "category": "MEL Systems",
        "tech_stack": ["React", "PostgreSQL", "Python"],
        "featured": True,
    },
    {
        "title": "ICT Infrastructure Audit",
        "slug": "ict-audit",
        "description": "Complete audit of ICT infrastructure for a government agency.",
        "category": "ICT Infrastructure",
        "tech_stack": ["Networking", "Security", "Hardware"],
        "featured": True,
    },
]

SAMPLE_POSTS = [
    {
        "title": "Introduction to MEL Systems",
        "slug": "intro-mel-systems",
        "excerpt": "Learn the basics of Monitoring, Evaluation, and Learning.",
        "content": "<p>Monitoring, Evaluation, and Learning (MEL) is critical for project success...</p>",
        "category": "MEL",
        "tags": ["MEL", "Basics"],
        "is_published": True,
        "read_time_minutes": 5,
    },
    {
        "title": "Designing Indicator Frameworks",
        "slug": "designing-indicator-frameworks",
        "excerpt": "How to pick indicators that actually get measured.",
        "content": "<p>A good indicator is specific, measurable and owned by someone...</p>",
        "category": "MEL",
        "tags": ["MEL", "Indicators"],
        "is_premium": True,
        "is_published": True,
        "read_time_minutes": 9,
    },
]


def seed():
    """Insert the sample projects and posts, skipping slugs that already exist"""
    init_db()
    db = SessionLocal()

    try:
        created = 0
        for project in SAMPLE_PROJECTS:
            if not db.query(PortfolioProject).filter(PortfolioProject.slug == project["slug"]).first():
                db.add(PortfolioProject(**project))
                created += 1

        for post in SAMPLE_POSTS:
            if not db.query(BlogPost).filter(BlogPost.slug == post["slug"]).first():
                db.add(BlogPost(**post))
                created += 1

        db.commit()
        print(f"✅ Seeding complete! {created} records created.")
    finally:
        db.close()


def list_users():
    db = SessionLocal()

    try:
        users = db.query(User).order_by(User.created_at).all()

        if not users:
            print("No users found.")
            return

        print(f"\n{'Email':<35} {'Name':<25} {'Premium':<10} {'Admin':<10}")
        print("-" * 80)

        for u in users:
            name = " ".join(part for part in (u.first_name, u.last_name) if part) or "-"
            print(f"{(u.email or '-'):<35} {name:<25} {'yes' if u.is_premium else 'no':<10} {'yes' if u.is_admin else 'no':<10}")

        print()
    finally:
        db.close()


def set_admin(email, is_admin):
    """Grant or revoke admin rights. The user must have logged in once."""
    db = SessionLocal()

    try:
        user = db.query(User).filter(func.lower(User.email) == email.lower()).first()

        if not user:
            print(f"❌ No user with email '{email}'. They need to log in once first.")
            return False

        user.is_admin = is_admin
        db.commit()

        print(f"✅ {email} is {'now' if is_admin else 'no longer'} an admin")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    command = sys.argv[1]

    if command == "--seed":
        seed()

    elif command == "--list-users":
        list_users()

    elif command in ("--grant-admin", "--revoke-admin"):
        if len(sys.argv) < 3:
            print(f"Usage: python manage.py {command} <email>")
            sys.exit(1)
        ok = set_admin(sys.argv[2], command == "--grant-admin")
        sys.exit(0 if ok else 1)

    else:
        print(f"Unknown command: {command}")
        print(__doc__)
        sys.exit(1)

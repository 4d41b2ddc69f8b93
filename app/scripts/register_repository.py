"""
Register a repository so it can be scanned. Run from project root:
  python -m app.scripts.register_repository PROJECT_ID NAME
Example:
  python -m app.scripts.register_repository proj-42 acme/web-app
"""
import argparse
import sys

from app.core.database import SessionLocal
from app.models import Repository


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Register a repository for security scanning.")
    parser.add_argument("project_id", help="Owning project id (1-255 chars)")
    parser.add_argument("name", help="Repository name, e.g. owner/repo (1-1024 chars)")
    args = parser.parse_args(argv)

    project_id = args.project_id.strip()
    name = args.name.strip()
    if not project_id or len(project_id) > 255:
        print("Invalid project id length.", file=sys.stderr)
        return 1
    if not name or len(name) > 1024:
        print("Invalid repository name length.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(Repository)
            .filter(Repository.project_id == project_id, Repository.name == name)
            .first()
        )
        if existing:
            print(f"Repository '{name}' already registered with id {existing.id}.", file=sys.stderr)
            return 1
        repo = Repository(project_id=project_id, name=name)
        db.add(repo)
        db.commit()
        print(f"Registered repository '{name}' in project '{project_id}' with id {repo.id}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())

import argparse

from evcharge.database.database import get_database
from evcharge.database.repositories import UserRepository
from evcharge.services.accounts import AccountService
from evcharge.services.errors import ValidationError


def main(argv=None, db=None):
    p = argparse.ArgumentParser(description="Crear usuario inicial")
    p.add_argument("--email", required=True)
    p.add_argument("--password", required=True)
    p.add_argument("--name", default="Usuario")
    args = p.parse_args(argv)

    db = db if db is not None else get_database()
    accounts = AccountService(UserRepository(db["users"]))
    try:
        user, _ = accounts.register(args.name, args.email, args.password)
    except ValidationError as e:
        print(f"No se pudo crear el usuario {args.email}: {e.message}")
        return 1
    print(f"Usuario creado: {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

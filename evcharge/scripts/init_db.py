from evcharge.database.database import get_database
from evcharge.database.repositories import Repositories


def init_db(db=None):
    Repositories(db if db is not None else get_database()).ensure_indexes()
    print("✅ Índices creados correctamente")


if __name__ == "__main__":
    init_db()

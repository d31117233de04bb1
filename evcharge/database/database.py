from functools import lru_cache
import os
from urllib.parse import quote_plus

import certifi
from dotenv import load_dotenv
from pymongo import MongoClient
from pymongo.database import Database

# Carga variables desde .env si está presente
load_dotenv()

DB_NAME = os.getenv("DB_NAME", "ev_booking")


def resolve_mongo_uri() -> str:
    """URI de MongoDB; permitimos construirla desde componentes para manejar passwords con encoding."""
    uri = os.getenv("MONGO_URI")
    if uri:
        return uri
    user = os.getenv("MONGO_USER")
    password = os.getenv("MONGO_PASSWORD")
    host = os.getenv("MONGO_HOST")  # p.ej. cluster0.abcde.mongodb.net
    if not (user and password and host):
        raise RuntimeError(
            "MONGO_URI no está configurada y faltan MONGO_USER/MONGO_PASSWORD/MONGO_HOST en .env"
        )
    params = os.getenv("MONGO_OPTIONS", "retryWrites=true&w=majority")
    app_name = os.getenv("MONGO_APP_NAME")
    if app_name:
        params += f"&appName={quote_plus(app_name)}"
    auth_source = os.getenv("MONGO_AUTH_SOURCE")
    if auth_source:
        params += f"&authSource={quote_plus(auth_source)}"
    return f"mongodb+srv://{quote_plus(user)}:{quote_plus(password)}@{host}/?{params}"


@lru_cache(maxsize=1)
def get_client() -> MongoClient:
    """Crea el cliente y valida la conexión (una sola vez por proceso)."""
    uri = resolve_mongo_uri()
    options = {"serverSelectionTimeoutMS": 5000}
    if uri.startswith("mongodb+srv://"):
        options["tlsCAFile"] = certifi.where()  # asegura cadena de certificados válida para Atlas
    client = MongoClient(uri, **options)
    try:
        client.admin.command("ping")
    except Exception as e:
        raise RuntimeError(f"No se pudo conectar a MongoDB con la URI proporcionada: {e}")
    return client


def get_database(name: str | None = None) -> Database:
    return get_client()[name or DB_NAME]

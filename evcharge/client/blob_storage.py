import logging
import os
import uuid
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from evcharge.services.errors import InternalError

# Cargar variables de entorno desde .env
load_dotenv()

logger = logging.getLogger(__name__)


@dataclass
class ImageFile:
    data: bytes
    filename: str
    content_type: Optional[str] = None


class S3BlobStore:
    """Sube imágenes a un bucket S3 y devuelve su URL pública."""

    def __init__(self, bucket: str, region: Optional[str] = None, prefix: str = "images", client=None):
        self.bucket = bucket
        self.region = region or "us-east-1"
        self.prefix = prefix.strip("/")
        self.client = client or boto3.client(
            "s3",
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            region_name=self.region,
        )

    def _key_for(self, filename: str) -> str:
        suffix = PurePath(filename or "").suffix.lower()
        return f"{self.prefix}/{uuid.uuid4().hex}{suffix}"

    def url_for(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, image: ImageFile) -> str:
        key = self._key_for(image.filename)
        extra = {"ContentType": image.content_type} if image.content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=image.data, **extra)
        except (BotoCoreError, ClientError):
            logger.exception(f"❌ Error subiendo imagen a s3://{self.bucket}/{key}")
            raise InternalError("No se pudo subir la imagen")
        logger.info(f"[INFO] Imagen subida: s3://{self.bucket}/{key}")
        return self.url_for(key)

    def discard(self, url: str) -> None:
        """Borra una imagen ya subida (p. ej. si falló el guardado en BD)."""
        key = url.split(".amazonaws.com/", 1)[-1]
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception(f"⚠️ No se pudo borrar s3://{self.bucket}/{key}; queda huérfana")
            return
        logger.info(f"[INFO] Imagen descartada: s3://{self.bucket}/{key}")


def blob_store_from_env() -> Optional[S3BlobStore]:
    bucket = os.getenv("S3_BUCKET")
    if not bucket:
        logger.warning("S3_BUCKET no configurado; la subida de imágenes no estará disponible")
        return None
    return S3BlobStore(
        bucket=bucket,
        region=os.getenv("AWS_DEFAULT_REGION"),
        prefix=os.getenv("S3_PREFIX", "images"),
    )

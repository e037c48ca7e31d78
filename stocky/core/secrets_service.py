# stocky/core/secrets_service.py

from typing import ClassVar, Optional, Type, TypeVar

import msgspec
from google.api_core import exceptions as gapi_exceptions
from google.cloud import secretmanager

from .logging import StockyLogger, log_with_context, INFO, DEBUG, WARNING


class SecretGroup(msgspec.Struct):
    """
    A set of related secrets read together.

    Each field maps to the Secret Manager secret ``<prefix>-<field>``
    (underscores become dashes). Missing secrets leave the field ``None``
    so callers can fall back to environment variables.
    """

    prefix: ClassVar[str] = "stocky"


class DatabaseSecrets(SecretGroup):
    prefix: ClassVar[str] = "stocky-db"

    user: Optional[str] = None
    password: Optional[str] = None
    host: Optional[str] = None


class RedisSecrets(SecretGroup):
    prefix: ClassVar[str] = "stocky-redis"

    url: Optional[str] = None


G = TypeVar("G", bound=SecretGroup)


class SecretsService:
    def __init__(self, project_id: str, client: Optional[secretmanager.SecretManagerServiceClient] = None):
        self.project_id = project_id
        self.client = client or secretmanager.SecretManagerServiceClient()
        self.logger = StockyLogger.get_logger('core.secrets')

    def get_secret(self, secret_name: str, version: str = "latest") -> Optional[str]:
        name = self.client.secret_version_path(self.project_id, secret_name, version)
        try:
            response = self.client.access_secret_version(name=name)
        except gapi_exceptions.NotFound:
            log_with_context(self.logger, DEBUG, "Secret not defined",
                             secret_name=secret_name, project_id=self.project_id)
            return None
        except gapi_exceptions.GoogleAPIError as e:
            log_with_context(self.logger, WARNING, "Secret lookup failed, using environment",
                             secret_name=secret_name, project_id=self.project_id,
                             error=str(e), exception_type=type(e).__name__)
            return None

        return response.payload.data.decode("utf-8")

    def fetch(self, group: Type[G]) -> G:
        values = {}
        for field in msgspec.structs.fields(group):
            secret_name = f"{group.prefix}-{field.name.replace('_', '-')}"
            values[field.name] = self.get_secret(secret_name)

        log_with_context(self.logger, INFO, "Secrets fetched",
                         group=group.__name__,
                         found=",".join(k for k, v in values.items() if v) or "none")

        return group(**values)
